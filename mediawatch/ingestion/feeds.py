"""Feed discovery: RSS/Atom feeds, XML sitemaps and scraped listing pages."""

import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, AsyncIterator, List, Optional

import feedparser
import httpx
from bs4 import BeautifulSoup

from ..config import ScraperConfig
from ..errors import ConfigMissing, FeedMalformed, FeedUnavailable, FeedUnreachable, ScrapeFailed
from ..models import FeedType, Source
from .canonical import clean_text
from .dates import from_struct_time, parse_date
from .http import FEED_ACCEPT, fetch_capped
from .models import DiscoveredArticle

if TYPE_CHECKING:
    from .scraper import PageScraper

logger = logging.getLogger(__name__)

_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)


def _entry_description(entry) -> str:
    description = entry.get("summary") or entry.get("description") or ""
    if not description and entry.get("content"):
        description = entry["content"][0].get("value", "")
    return description


def _entry_published(entry) -> Optional[datetime]:
    for key in ("published", "updated"):
        parsed = parse_date(entry.get(key))
        if parsed:
            return parsed
    for key in ("published_parsed", "updated_parsed"):
        parsed = from_struct_time(entry.get(key))
        if parsed:
            return parsed
    return None


def entry_image(entry, description_html: str = "") -> Optional[str]:
    """
    Image URL for a feed entry.

    Preference order: image enclosure, media:content, first <img> in the
    description markup.
    """
    for enclosure in entry.get("enclosures", []):
        if enclosure.get("type", "").startswith("image/") and enclosure.get("href"):
            return enclosure["href"]

    for media in entry.get("media_content", []):
        media_type = media.get("type", "")
        if media.get("url") and (not media_type or media_type.startswith("image/")):
            return media["url"]

    match = _IMG_SRC_RE.search(description_html or "")
    if match:
        return match.group(1)
    return None


def parse_feed(body: bytes, url: str) -> List[DiscoveredArticle]:
    """Parse an RSS 2.0 or Atom document into discovered articles."""
    parsed = feedparser.parse(body)
    if not parsed.entries:
        raise FeedMalformed(url)

    items = []
    for entry in parsed.entries:
        link = (entry.get("link") or "").strip()
        if not link:
            continue
        description_html = _entry_description(entry)
        items.append(
            DiscoveredArticle(
                url=link,
                title=(entry.get("title") or "").strip() or None,
                description=clean_text(description_html) or None,
                published=_entry_published(entry),
                image_url=entry_image(entry, description_html),
            )
        )
    return items


def parse_sitemap(body: bytes) -> List[DiscoveredArticle]:
    """Extract <urlset><url><loc> entries."""
    soup = BeautifulSoup(body, "html.parser")
    items = []
    for url_tag in soup.find_all("url"):
        loc = url_tag.find("loc")
        if loc and loc.get_text(strip=True):
            items.append(DiscoveredArticle(url=loc.get_text(strip=True)))
    return items


class FeedDiscoverer:
    """Yield candidate articles for a configured source."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: ScraperConfig,
        scraper: "PageScraper",
    ) -> None:
        self.client = client
        self.settings = settings
        self.scraper = scraper

    async def _fetch(self, url: str, accept: Optional[str] = None) -> bytes:
        headers = {"User-Agent": self.settings.user_agent}
        if accept:
            headers["Accept"] = accept
        try:
            response = await fetch_capped(
                self.client,
                url,
                limit=self.settings.max_feed_bytes,
                timeout=self.settings.feed_timeout,
                headers=headers,
            )
        except httpx.HTTPStatusError as e:
            raise FeedUnreachable.from_status(url, e.response.status_code)
        except httpx.HTTPError as e:
            raise FeedUnavailable(url, str(e) or type(e).__name__)
        return response.content

    async def fetch_feed(self, url: str) -> List[DiscoveredArticle]:
        """Fetch and parse one RSS/Atom feed."""
        body = await self._fetch(url, accept=FEED_ACCEPT)
        return parse_feed(body, url)

    async def fetch_sitemap(self, url: str) -> List[DiscoveredArticle]:
        body = await self._fetch(url)
        return parse_sitemap(body)

    async def discover(self, source: Source) -> AsyncIterator[DiscoveredArticle]:
        """
        Yield candidates for ``source`` in feed order.

        Raises:
            ConfigMissing: a field required by the feed type is empty
            FeedUnreachable: the feed or sitemap could not be fetched
            FeedMalformed: an RSS source produced no entries
        """
        if source.feed_type == FeedType.RSS:
            if not source.feed_url:
                raise ConfigMissing(source.name, "feed_url")
            for item in await self.fetch_feed(source.feed_url):
                yield item

        elif source.feed_type == FeedType.SITEMAP:
            if not source.feed_url:
                raise ConfigMissing(source.name, "feed_url")
            for item in await self.fetch_sitemap(source.feed_url):
                yield item

        elif source.feed_type == FeedType.SCRAPE:
            if not source.list_urls:
                raise ConfigMissing(source.name, "list_urls")
            if not source.link_selector:
                raise ConfigMissing(source.name, "link_selector")
            for list_url in source.list_urls:
                try:
                    links = await self.scraper.scrape_links(list_url, source.link_selector)
                except ScrapeFailed as e:
                    logger.warning("%s: listing page failed: %s", source.name, e)
                    continue
                logger.debug("%s: %d links on %s", source.name, len(links), list_url)
                for link in links:
                    yield DiscoveredArticle(url=link)
