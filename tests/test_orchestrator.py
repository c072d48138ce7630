"""Tests for the ingestion orchestrator."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from mediawatch.evidence import EvidenceStore
from mediawatch.ingestion import FeedDiscoverer, PageScraper, hash_url
from mediawatch.models import ArticleStatus, EvidencePolicy, FeedType, Source
from mediawatch.pipeline import Deadline, Enricher, IngestionOrchestrator

from conftest import FakeSourceStore

FEED_URL = "https://news.site/feed"

S2_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>News Site</title>
  <item>
    <title>T</title>
    <link>https://news.site/a?fbclid=1</link>
    <description><![CDATA[<p>Hello &amp; welcome</p>]]></description>
    <pubDate>Mon, 02 Jan 2006 15:04:05 -0700</pubDate>
  </item>
</channel></rss>
"""

NOISE_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Federal Register</title>
  <item>
    <title>Agency Information Collection; 60-day Notice</title>
    <link>https://fedreg.example/notice-1</link>
    <description>Notice text</description>
  </item>
  <item>
    <title>Disaster grants announced for the island</title>
    <link>https://fedreg.example/grants</link>
    <description>Grant text</description>
  </item>
</channel></rss>
"""

ARTICLE_PAGE = """
<html><head><meta property="og:image" content="https://img.news.site/lead.jpg"></head>
<body><h1>Scraped headline</h1><div class="body"><p>Scraped body text.</p></div></body></html>
"""


def feed_of(count: int) -> bytes:
    items = "".join(
        f"<item><title>Story {i}</title><link>https://news.site/story-{i}</link>"
        f"<description>Body {i}</description></item>"
        for i in range(count)
    )
    return f'<?xml version="1.0"?><rss version="2.0"><channel><title>N</title>{items}</channel></rss>'.encode()


def rss_source(name="News Site", feed_url=FEED_URL) -> Source:
    return Source(name=name, region="PR", feed_type=FeedType.RSS, feed_url=feed_url)


@pytest.fixture
def build(make_client, settings, llm, articles, fingerprints):
    """Factory wiring an orchestrator to in-memory stores and a mocked network."""

    def factory(routes, sources, evidence=None):
        client = make_client(routes)
        scraper = PageScraper(client, settings.scraper)
        discoverer = FeedDiscoverer(client, settings.scraper, scraper)
        enricher = Enricher(llm, articles, evidence or EvidenceStore(None), concurrency=2)
        return IngestionOrchestrator(
            FakeSourceStore(sources),
            articles,
            fingerprints,
            discoverer,
            scraper,
            enricher,
            settings.ingestion,
        )

    return factory


class TestIngestionOrchestrator:
    """Tests for one ingestion run."""

    @pytest.mark.asyncio
    async def test_rss_happy_path(self, build, articles, fingerprints):
        orchestrator = build({FEED_URL: httpx.Response(200, content=S2_FEED)}, [rss_source()])

        stats = await orchestrator.run()

        assert stats.ingested == 1
        assert len(articles.rows) == 1
        article = next(iter(articles.rows.values()))
        assert article.clean_text == "Hello & welcome"
        assert article.canonical_url == "https://news.site/a"
        assert article.url_hash == hash_url("https://news.site/a?fbclid=1")
        assert article.source_name == "News Site"
        assert article.region == "PR"
        assert article.status == ArticleStatus.INBOX
        assert article.evidence_policy == EvidencePolicy.RET_3M
        assert article.published_at == datetime(2006, 1, 2, 22, 4, 5, tzinfo=timezone.utc)
        lifetime = article.evidence_expires_at - article.created_at
        assert timedelta(days=89) <= lifetime <= timedelta(days=92)
        assert list(fingerprints.rows) == [article.url_hash]

    @pytest.mark.asyncio
    async def test_articles_are_enriched_before_run_returns(self, build, articles, llm):
        orchestrator = build({FEED_URL: httpx.Response(200, content=S2_FEED)}, [rss_source()])

        await orchestrator.run()

        article = next(iter(articles.rows.values()))
        assert article.summary == "Resumen de la noticia."
        assert article.tags == ["politics", "economy"]
        assert article.embedding == [0.1, 0.2, 0.3]

    @pytest.mark.asyncio
    async def test_rerun_creates_nothing_new(self, build, articles, fingerprints):
        orchestrator = build({FEED_URL: httpx.Response(200, content=S2_FEED)}, [rss_source()])

        await orchestrator.run()
        stats = await orchestrator.run()

        assert stats.ingested == 0
        assert stats.duplicates == 1
        assert len(articles.rows) == 1
        assert len(fingerprints.rows) == 1

    @pytest.mark.asyncio
    async def test_noise_title_leaves_no_trace(self, build, articles, fingerprints):
        orchestrator = build(
            {FEED_URL: httpx.Response(200, content=NOISE_FEED)}, [rss_source("Federal Register")]
        )

        stats = await orchestrator.run()

        assert stats.noise == 1
        assert stats.ingested == 1
        titles = [a.title for a in articles.rows.values()]
        assert titles == ["Disaster grants announced for the island"]
        assert hash_url("https://fedreg.example/notice-1") not in fingerprints.rows

    @pytest.mark.asyncio
    async def test_budget_counts_articles_already_ingested_today(self, build, articles, settings):
        settings.ingestion.daily_budget = 5
        articles.today_count = 3
        orchestrator = build({FEED_URL: httpx.Response(200, content=feed_of(6))}, [rss_source()])

        stats = await orchestrator.run()

        assert stats.budget == 2
        assert stats.ingested == 2
        assert stats.budget_exhausted
        assert len(articles.rows) == 2

    @pytest.mark.asyncio
    async def test_budget_spent_skips_run(self, build, articles, settings):
        settings.ingestion.daily_budget = 5
        articles.today_count = 5
        orchestrator = build({FEED_URL: httpx.Response(200, content=feed_of(3))}, [rss_source()])

        stats = await orchestrator.run()

        assert stats.budget_exhausted
        assert stats.sources == 0
        assert not articles.rows

    @pytest.mark.asyncio
    async def test_failing_source_does_not_stop_run(self, build, articles):
        sources = [
            rss_source("Broken", "https://broken.site/feed"),
            rss_source("Inactive").model_copy(update={"active": False}),
            rss_source(),
        ]
        orchestrator = build({FEED_URL: httpx.Response(200, content=S2_FEED)}, sources)

        stats = await orchestrator.run()

        assert stats.sources == 2
        assert stats.ingested == 1

    @pytest.mark.asyncio
    async def test_scrape_path_uses_page_content(self, build, articles, settings):
        sitemap = b"""<?xml version="1.0"?><urlset><url><loc>https://news.site/story</loc></url>
            <url><loc>https://news.site/empty</loc></url>
            <url><loc>https://news.site/missing</loc></url></urlset>"""
        source = Source(
            name="Sitemap Site",
            feed_type=FeedType.SITEMAP,
            feed_url="https://news.site/sitemap.xml",
            title_selector="h1",
            body_selector="div.body p",
        )
        orchestrator = build(
            {
                "https://news.site/sitemap.xml": httpx.Response(200, content=sitemap),
                "https://news.site/story": httpx.Response(200, text=ARTICLE_PAGE),
                "https://news.site/empty": httpx.Response(200, text="<html><body></body></html>"),
            },
            [source],
        )

        stats = await orchestrator.run()

        assert stats.ingested == 1
        assert stats.empty == 1
        assert stats.failed == 1
        article = next(iter(articles.rows.values()))
        assert article.title == "Scraped headline"
        assert article.clean_text == "Scraped body text."
        assert article.image_url == "https://img.news.site/lead.jpg"

    @pytest.mark.asyncio
    async def test_evidence_is_captured_on_scrape_path(self, build, articles, s3):
        sitemap = b'<?xml version="1.0"?><urlset><url><loc>https://news.site/story</loc></url></urlset>'
        source = Source(
            name="Sitemap Site",
            feed_type=FeedType.SITEMAP,
            feed_url="https://news.site/sitemap.xml",
            title_selector="h1",
            body_selector="div.body p",
        )
        evidence = EvidenceStore(s3, "bucket")
        orchestrator = build(
            {
                "https://news.site/sitemap.xml": httpx.Response(200, content=sitemap),
                "https://news.site/story": httpx.Response(200, text=ARTICLE_PAGE),
            },
            [source],
            evidence=evidence,
        )

        await orchestrator.run()

        article = next(iter(articles.rows.values()))
        bundle = await evidence.get(article.id)
        assert b"Scraped headline" in bundle.raw

    @pytest.mark.asyncio
    async def test_expired_deadline_stops_before_first_source(self, build, articles):
        orchestrator = build({FEED_URL: httpx.Response(200, content=S2_FEED)}, [rss_source()])

        stats = await orchestrator.run(Deadline(0))

        assert stats.deadline_expired
        assert not articles.rows
