"""Search agents that look for mentions of a watched organization."""

from abc import ABC, abstractmethod
from typing import List, Sequence
from urllib.parse import quote_plus

from ..config.models import RegionConfig
from ..db import ArticleStore
from ..errors import FeedMalformed
from ..ingestion import FeedDiscoverer, WebResult, WebSearch
from ..models import MentionSource, WatchlistOrg
from ..models.watchlist import SNIPPET_MAX_CHARS

GOOGLE_NEWS_URL = "https://news.google.com/rss/search?q={query}&hl=es-419&gl={code}&ceid={code}:es-419"
VIDEO_CHANNEL_URL = "https://www.youtube.com/feeds/videos.xml?channel_id={channel}"
SUBREDDIT_SEARCH_URL = "https://www.reddit.com/search.rss?q={query}&sort=new"


def mentions_org(text: str, org: WatchlistOrg) -> bool:
    """True if ``text`` contains the org name or one of its keywords."""
    lowered = text.lower()
    terms = [org.name, *org.keywords]
    return any(term and term.lower() in lowered for term in terms)


class Agent(ABC):
    """
    One search backend.

    The scanner calls ``fetch`` once per target (a query, a channel id, ...)
    under the agent deadline and filters what comes back.
    """

    source_type: MentionSource

    @property
    def name(self) -> str:
        return self.source_type.value

    def enabled(self, org: WatchlistOrg) -> bool:
        return True

    def targets(self, org: WatchlistOrg, queries: Sequence[str]) -> List[str]:
        return list(queries)

    def spam_keywords(self, org: WatchlistOrg) -> List[str]:
        """Keywords a result must contain to pass the subreddit keyword rule."""
        return []

    @abstractmethod
    async def fetch(self, org: WatchlistOrg, target: str) -> List[WebResult]:
        """Raw results for one target."""


class FeedSearchAgent(Agent):
    """Agent backed by a search endpoint that answers in RSS or Atom."""

    url_template: str

    def __init__(self, feeds: FeedDiscoverer) -> None:
        self.feeds = feeds

    def feed_url(self, target: str) -> str:
        return self.url_template.format(query=quote_plus(target))

    async def fetch(self, org: WatchlistOrg, target: str) -> List[WebResult]:
        try:
            items = await self.feeds.fetch_feed(self.feed_url(target))
        except FeedMalformed:
            # search feeds come back empty when nothing matched
            return []
        return [
            WebResult(title=item.title or "", url=item.url, snippet=item.description or "")
            for item in items
        ]


class GoogleNewsAgent(FeedSearchAgent):
    source_type = MentionSource.GOOGLE_NEWS
    url_template = GOOGLE_NEWS_URL

    def __init__(self, feeds: FeedDiscoverer, region: RegionConfig) -> None:
        super().__init__(feeds)
        self.region_code = region.code

    def feed_url(self, target: str) -> str:
        return self.url_template.format(query=quote_plus(target), code=self.region_code)


class BingNewsAgent(Agent):
    source_type = MentionSource.BING_NEWS

    def __init__(self, search: WebSearch) -> None:
        self.search = search

    async def fetch(self, org: WatchlistOrg, target: str) -> List[WebResult]:
        try:
            return await self.search.bing_news(target)
        except FeedMalformed:
            return []


class WebSearchAgent(Agent):
    source_type = MentionSource.WEB

    def __init__(self, search: WebSearch, max_results: int = 10) -> None:
        self.search = search
        self.max_results = max_results

    async def fetch(self, org: WatchlistOrg, target: str) -> List[WebResult]:
        return await self.search.ddg(target, self.max_results)


class LocalCorpusAgent(Agent):
    """Recently ingested articles that mention the org."""

    source_type = MentionSource.LOCAL

    def __init__(self, articles: ArticleStore, hours: int = 48) -> None:
        self.articles = articles
        self.hours = hours

    def targets(self, org: WatchlistOrg, queries: Sequence[str]) -> List[str]:
        return [org.name]

    async def fetch(self, org: WatchlistOrg, target: str) -> List[WebResult]:
        results = []
        for article in await self.articles.list_recent(self.hours):
            if not mentions_org(f"{article.title} {article.clean_text}", org):
                continue
            snippet = article.summary or article.clean_text[:SNIPPET_MAX_CHARS]
            results.append(
                WebResult(title=article.title, url=article.canonical_url, snippet=snippet)
            )
        return results


class VideoChannelAgent(FeedSearchAgent):
    """Uploads of the org's configured video channels that mention it."""

    source_type = MentionSource.YOUTUBE
    url_template = VIDEO_CHANNEL_URL

    def enabled(self, org: WatchlistOrg) -> bool:
        return bool(org.video_channels)

    def targets(self, org: WatchlistOrg, queries: Sequence[str]) -> List[str]:
        return list(org.video_channels)

    def feed_url(self, target: str) -> str:
        return self.url_template.format(channel=quote_plus(target))

    async def fetch(self, org: WatchlistOrg, target: str) -> List[WebResult]:
        results = await super().fetch(org, target)
        return [r for r in results if mentions_org(f"{r.title} {r.snippet}", org)]


class SubredditAgent(FeedSearchAgent):
    source_type = MentionSource.REDDIT
    url_template = SUBREDDIT_SEARCH_URL

    def spam_keywords(self, org: WatchlistOrg) -> List[str]:
        return [org.name, *org.keywords]


def default_agents(
    feeds: FeedDiscoverer,
    search: WebSearch,
    articles: ArticleStore,
    region: RegionConfig,
    max_results: int = 10,
    local_hours: int = 48,
) -> List[Agent]:
    """The agents in scan order."""
    return [
        GoogleNewsAgent(feeds, region),
        BingNewsAgent(search),
        WebSearchAgent(search, max_results),
        LocalCorpusAgent(articles, local_hours),
        VideoChannelAgent(feeds),
        SubredditAgent(feeds),
    ]
