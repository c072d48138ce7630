"""Tests for feed, sitemap and listing-page discovery."""

from datetime import datetime, timezone

import httpx
import pytest

from mediawatch.errors import ConfigMissing, FeedMalformed, FeedUnreachable, PermanentExternalError
from mediawatch.ingestion import FeedDiscoverer, PageScraper
from mediawatch.ingestion.dates import parse_date
from mediawatch.ingestion.feeds import parse_feed, parse_sitemap
from mediawatch.models import FeedType, Source

RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>News Site</title>
    <item>
      <title>T</title>
      <link>https://news.site/a?fbclid=1</link>
      <description><![CDATA[<p>Hello &amp; welcome</p>]]></description>
      <pubDate>Mon, 02 Jan 2006 15:04:05 -0700</pubDate>
    </item>
    <item>
      <title>With enclosure</title>
      <link>https://news.site/b</link>
      <description>Second story</description>
      <enclosure url="https://img.news.site/b.jpg" type="image/jpeg" length="100"/>
    </item>
    <item>
      <title>With media</title>
      <link>https://news.site/c</link>
      <description>Third story</description>
      <media:content url="https://img.news.site/c.jpg" medium="image" type="image/jpeg"/>
    </item>
    <item>
      <title>Inline image</title>
      <link>https://news.site/d</link>
      <description><![CDATA[<p><img src="https://img.news.site/d.png"/>Fourth story</p>]]></description>
    </item>
    <item>
      <title>No link</title>
    </item>
  </channel>
</rss>
"""

ATOM = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Site</title>
  <entry>
    <title>Atom entry</title>
    <link href="https://atom.site/entry-1"/>
    <updated>2024-03-01T12:00:00Z</updated>
    <summary>Atom summary</summary>
  </entry>
</feed>
"""

SITEMAP = b"""<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://news.site/one</loc></url>
  <url><loc> https://news.site/two </loc></url>
  <url><lastmod>2024-01-01</lastmod></url>
</urlset>
"""

LISTING = """
<html><body>
  <h2 class="headline"><a href="/noticias/uno">Uno</a></h2>
  <h2 class="headline"><a href="/noticias/dos">Dos</a></h2>
  <h2 class="headline"><a href="/noticias/uno">Uno again</a></h2>
</body></html>
"""


def discoverer_for(make_client, settings, routes) -> FeedDiscoverer:
    client = make_client(routes)
    scraper = PageScraper(client, settings.scraper)
    return FeedDiscoverer(client, settings.scraper, scraper)


async def collect(discoverer, source):
    return [item async for item in discoverer.discover(source)]


class TestParseFeed:
    """Tests for RSS and Atom parsing."""

    def test_rss_item_fields(self):
        items = parse_feed(RSS, "https://news.site/feed")
        first = items[0]
        assert first.url == "https://news.site/a?fbclid=1"
        assert first.title == "T"
        assert first.description == "Hello & welcome"
        assert first.published == datetime(2006, 1, 2, 22, 4, 5, tzinfo=timezone.utc)

    def test_items_without_link_are_skipped(self):
        items = parse_feed(RSS, "https://news.site/feed")
        assert [item.url for item in items] == [
            "https://news.site/a?fbclid=1",
            "https://news.site/b",
            "https://news.site/c",
            "https://news.site/d",
        ]

    def test_image_sources(self):
        items = {item.url: item for item in parse_feed(RSS, "https://news.site/feed")}
        assert items["https://news.site/a?fbclid=1"].image_url is None
        assert items["https://news.site/b"].image_url == "https://img.news.site/b.jpg"
        assert items["https://news.site/c"].image_url == "https://img.news.site/c.jpg"
        assert items["https://news.site/d"].image_url == "https://img.news.site/d.png"

    def test_atom(self):
        items = parse_feed(ATOM, "https://atom.site/feed")
        assert len(items) == 1
        assert items[0].url == "https://atom.site/entry-1"
        assert items[0].description == "Atom summary"
        assert items[0].published == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def test_not_a_feed(self):
        with pytest.raises(FeedMalformed):
            parse_feed(b"<html><body>Hello</body></html>", "https://news.site/feed")


class TestParseSitemap:
    """Tests for sitemap parsing."""

    def test_locations(self):
        assert [item.url for item in parse_sitemap(SITEMAP)] == [
            "https://news.site/one",
            "https://news.site/two",
        ]


class TestParseDate:
    """Tests for lenient date parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Mon, 02 Jan 2006 15:04:05 -0700", datetime(2006, 1, 2, 22, 4, 5, tzinfo=timezone.utc)),
            ("2024-03-01T10:00:00Z", datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)),
            ("2024-03-01", datetime(2024, 3, 1, tzinfo=timezone.utc)),
            ("March 5, 2024", datetime(2024, 3, 5, tzinfo=timezone.utc)),
        ],
    )
    def test_formats(self, value, expected):
        assert parse_date(value) == expected

    def test_unparseable(self):
        assert parse_date("ayer por la tarde") is None
        assert parse_date("") is None


class TestFeedDiscoverer:
    """Tests for source discovery."""

    @pytest.mark.asyncio
    async def test_rss_source(self, make_client, settings):
        discoverer = discoverer_for(
            make_client, settings, {"https://news.site/feed": httpx.Response(200, content=RSS)}
        )
        source = Source(name="News", feed_type=FeedType.RSS, feed_url="https://news.site/feed")
        items = await collect(discoverer, source)
        assert len(items) == 4

    @pytest.mark.asyncio
    async def test_sitemap_source(self, make_client, settings):
        discoverer = discoverer_for(
            make_client, settings, {"https://news.site/sitemap.xml": httpx.Response(200, content=SITEMAP)}
        )
        source = Source(
            name="News", feed_type=FeedType.SITEMAP, feed_url="https://news.site/sitemap.xml"
        )
        items = await collect(discoverer, source)
        assert [item.url for item in items] == ["https://news.site/one", "https://news.site/two"]

    @pytest.mark.asyncio
    async def test_scrape_source(self, make_client, settings):
        discoverer = discoverer_for(
            make_client, settings, {"https://news.site/ultimas": httpx.Response(200, text=LISTING)}
        )
        source = Source(
            name="News",
            base_url="https://news.site",
            feed_type=FeedType.SCRAPE,
            list_urls=["https://news.site/ultimas", "https://news.site/missing"],
            link_selector="h2.headline a",
        )
        items = await collect(discoverer, source)
        assert [item.url for item in items] == [
            "https://news.site/noticias/uno",
            "https://news.site/noticias/dos",
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "source",
        [
            Source(name="NoFeed", feed_type=FeedType.RSS),
            Source(name="NoSitemap", feed_type=FeedType.SITEMAP),
            Source(name="NoLists", feed_type=FeedType.SCRAPE, link_selector="a"),
            Source(name="NoSelector", feed_type=FeedType.SCRAPE, list_urls=["https://x.com/"]),
        ],
    )
    async def test_missing_config(self, make_client, settings, source):
        discoverer = discoverer_for(make_client, settings, {})
        with pytest.raises(ConfigMissing):
            await collect(discoverer, source)

    @pytest.mark.asyncio
    async def test_unreachable_feed(self, make_client, settings):
        discoverer = discoverer_for(make_client, settings, {})
        source = Source(name="News", feed_type=FeedType.RSS, feed_url="https://news.site/feed")
        with pytest.raises(FeedUnreachable) as exc_info:
            await collect(discoverer, source)
        assert exc_info.value.status == 404
        assert isinstance(exc_info.value, PermanentExternalError)

    @pytest.mark.asyncio
    async def test_feed_body_is_capped(self, make_client, settings):
        settings.scraper.max_feed_bytes = 64
        discoverer = discoverer_for(
            make_client, settings, {"https://news.site/feed": httpx.Response(200, content=RSS)}
        )
        with pytest.raises(FeedMalformed):
            await discoverer.fetch_feed("https://news.site/feed")
