"""Rate-limited HTML page scraper with CSS-selector extraction."""

import logging
from typing import List, Optional
from urllib.parse import urljoin

import httpx
import trafilatura
from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from ..config import ScraperConfig
from ..errors import ConfigInvalidError, ScrapeFailed, ScrapeUnavailable
from ..models import Selectors
from .canonical import clean_text
from .dates import parse_date
from .http import HTML_ACCEPT, DomainRateLimiter, decode_body, fetch_capped
from .models import ScrapedArticle

logger = logging.getLogger(__name__)

_SKIP_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:")


def _select(soup: BeautifulSoup, selector: str) -> list:
    if not selector or not selector.strip():
        return []
    try:
        return soup.select(selector)
    except SelectorSyntaxError as e:
        raise ConfigInvalidError(f"invalid CSS selector {selector!r}: {e}")


def extract_article(url: str, html: str, selectors: Selectors) -> ScrapedArticle:
    """Apply the title/body/date selectors to ``html``."""
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    title_matches = _select(soup, selectors.title)
    if title_matches:
        title = title_matches[0].get_text(" ", strip=True)
    if not title and soup.title:
        title = soup.title.get_text(" ", strip=True)

    parts = []
    for element in _select(soup, selectors.body):
        text = clean_text(str(element))
        if text:
            parts.append(text)

    published_at = None
    date_matches = _select(soup, selectors.date)
    if date_matches:
        element = date_matches[0]
        published_at = (
            parse_date(element.get_text(strip=True))
            or parse_date(element.get("datetime"))
            or parse_date(element.get("content"))
        )

    return ScrapedArticle(
        url=url,
        title=title,
        clean_text="\n\n".join(parts),
        published_at=published_at,
        raw_html=html,
    )


def extract_links(base_url: str, html: str, link_selector: str) -> List[str]:
    """Absolute, de-duplicated hrefs matched by ``link_selector`` in first-seen order."""
    soup = BeautifulSoup(html, "html.parser")
    seen = set()
    links = []
    for element in _select(soup, link_selector):
        href = element.get("href")
        if not href:
            anchor = element.find("a", href=True)
            href = anchor["href"] if anchor else None
        if not href or href.strip().lower().startswith(_SKIP_HREF_PREFIXES):
            continue
        absolute = urljoin(base_url, href.strip())
        if absolute not in seen:
            seen.add(absolute)
            links.append(absolute)
    return links


def extract_og_image(html: str) -> str:
    """og:image, falling back to twitter:image; empty string if neither is present."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for key in ("og:image", "twitter:image"):
        for attr in ("property", "name"):
            tag = soup.find("meta", attrs={attr: key})
            if tag and tag.get("content", "").strip():
                return tag["content"].strip()
    return ""


class PageScraper:
    """Fetch article pages politely and extract structured fields."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: ScraperConfig,
        limiter: Optional[DomainRateLimiter] = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self.limiter = limiter or DomainRateLimiter(
            delay=settings.delay,
            jitter=settings.jitter,
            parallelism=settings.parallelism,
        )
        self.headers = {
            "User-Agent": settings.user_agent,
            "Accept": HTML_ACCEPT,
            "Accept-Language": "es-419,es;q=0.9,en;q=0.8",
        }

    async def fetch_html(self, url: str, timeout: Optional[float] = None, limit: Optional[int] = None) -> str:
        """GET ``url`` through the per-domain limiter and return the decoded body."""
        async with self.limiter.limit(url):
            try:
                response = await fetch_capped(
                    self.client,
                    url,
                    limit=limit or self.settings.max_feed_bytes,
                    timeout=timeout or self.settings.page_timeout,
                    headers=self.headers,
                    max_redirects=self.settings.max_redirects,
                )
            except httpx.HTTPStatusError as e:
                raise ScrapeFailed.from_status(url, e.response.status_code)
            except httpx.HTTPError as e:
                raise ScrapeUnavailable(url, str(e) or type(e).__name__)
        return decode_body(response, response.content)

    async def scrape_article(self, url: str, selectors: Selectors) -> ScrapedArticle:
        """Fetch ``url`` and extract title, body text and date."""
        html = await self.fetch_html(url)
        return extract_article(url, html, selectors)

    async def scrape_links(self, list_url: str, link_selector: str) -> List[str]:
        html = await self.fetch_html(list_url)
        return extract_links(list_url, html, link_selector)

    async def extract_image_url(self, url: str) -> str:
        """Best-effort og:image lookup; returns an empty string on any failure."""
        try:
            html = await self.fetch_html(url, timeout=self.settings.image_timeout)
        except ScrapeFailed as e:
            logger.debug("Image lookup failed for %s: %s", url, e)
            return ""
        return extract_og_image(html)

    async def fetch_page_text(self, url: str) -> str:
        """Main text of a page, capped at the page-text body limit."""
        html = await self.fetch_html(
            url,
            timeout=self.settings.page_timeout,
            limit=self.settings.max_page_text_bytes,
        )
        extracted = trafilatura.extract(
            html,
            include_comments=False,
            include_tables=False,
            favor_recall=True,
            url=url,
        )
        return extracted or clean_text(html)
