"""Web search clients: DuckDuckGo Lite (HTML) and Bing News (RSS)."""

import logging
from typing import List
from urllib.parse import parse_qs, quote_plus, urlsplit

import httpx
from bs4 import BeautifulSoup

from ..config import ScraperConfig
from ..errors import FeedUnavailable, FeedUnreachable
from .canonical import clean_text
from .feeds import FeedDiscoverer
from .http import HTML_ACCEPT, decode_body, fetch_capped
from .models import WebResult

logger = logging.getLogger(__name__)

DDG_LITE_URL = "https://lite.duckduckgo.com/lite/?q={query}"
BING_NEWS_URL = "https://www.bing.com/news/search?q={query}&format=rss"


def _unwrap_ddg_href(href: str) -> str:
    """Resolve DuckDuckGo redirect links; other duckduckgo.com links become ''."""
    if href.startswith("//"):
        href = "https:" + href
    parts = urlsplit(href)
    if parts.hostname and parts.hostname.endswith("duckduckgo.com"):
        target = parse_qs(parts.query).get("uddg")
        return target[0] if target else ""
    return href


def _is_result_anchor(tag) -> bool:
    return tag.name == "a" and "nofollow" in (tag.get("rel") or [])


def _is_snippet_cell(tag) -> bool:
    return tag.name == "td" and "result-snippet" in (tag.get("class") or [])


def parse_ddg_lite(html: str, max_results: int = 10) -> List[WebResult]:
    """
    Parse the table layout of lite.duckduckgo.com.

    Each result is a ``rel="nofollow"`` anchor followed (in a later row) by a
    ``result-snippet`` cell; a snippet attaches to the closest preceding
    anchor.
    """
    soup = BeautifulSoup(html, "html.parser")
    results: List[WebResult] = []
    current = None
    for tag in soup.find_all(lambda t: _is_result_anchor(t) or _is_snippet_cell(t)):
        if _is_result_anchor(tag):
            if len(results) >= max_results:
                break
            url = _unwrap_ddg_href(tag.get("href", "").strip())
            title = tag.get_text(" ", strip=True)
            if not url or not title or not url.startswith("http"):
                current = None
                continue
            current = WebResult(title=title, url=url)
            results.append(current)
        elif current is not None and not current.snippet:
            current.snippet = clean_text(str(tag))
    return results


class WebSearch:
    """Search engines used by the watchlist agents and keyword enrichment."""

    def __init__(self, client: httpx.AsyncClient, settings: ScraperConfig, feeds: FeedDiscoverer) -> None:
        self.client = client
        self.settings = settings
        self.feeds = feeds
        self.headers = {"User-Agent": settings.user_agent, "Accept": HTML_ACCEPT}

    async def ddg(self, query: str, max_results: int = 10) -> List[WebResult]:
        """Query DuckDuckGo Lite."""
        url = DDG_LITE_URL.format(query=quote_plus(query))
        try:
            response = await fetch_capped(
                self.client,
                url,
                limit=self.settings.max_search_bytes,
                timeout=self.settings.feed_timeout,
                headers=self.headers,
            )
        except httpx.HTTPStatusError as e:
            raise FeedUnreachable.from_status(url, e.response.status_code)
        except httpx.HTTPError as e:
            raise FeedUnavailable(url, str(e) or type(e).__name__)
        return parse_ddg_lite(decode_body(response, response.content), max_results)

    async def bing_news(self, query: str) -> List[WebResult]:
        """Query Bing News through its RSS output."""
        url = BING_NEWS_URL.format(query=quote_plus(query))
        items = await self.feeds.fetch_feed(url)
        return [
            WebResult(title=item.title or "", url=item.url, snippet=item.description or "")
            for item in items
            if item.title
        ]

    async def multi_search(self, queries: List[str], max_per_query: int = 5) -> List[WebResult]:
        """Run several DDG queries, de-duplicating by URL; failed queries are skipped."""
        seen = set()
        results = []
        for query in queries:
            try:
                found = await self.ddg(query, max_per_query)
            except FeedUnreachable as e:
                logger.warning("Search failed for %r: %s", query, e)
                continue
            for result in found:
                if result.url not in seen:
                    seen.add(result.url)
                    results.append(result)
        return results
