"""Ingestion run: discover, dedupe, scrape, commit and enqueue enrichment."""

import asyncio
import logging
import time
from contextlib import aclosing
from typing import Optional, Tuple
from uuid import uuid4

import pendulum
import psycopg
from pydantic import BaseModel

from ..config.models import IngestionConfig
from ..db import ArticleStore, FingerprintStore, SourceStore
from ..errors import MediaWatchError, log_level
from ..ingestion import (
    DiscoveredArticle,
    FeedDiscoverer,
    PageScraper,
    canonicalize_url,
    hash_content,
    hash_url,
    is_noise_title,
)
from ..ingestion.scraper import extract_og_image
from ..models import Article, Source
from .deadline import Deadline
from .enrichment import Enricher, EnrichmentTask
from .pool import WorkerPool

logger = logging.getLogger(__name__)


class IngestionStats(BaseModel):
    """Counters for one ingestion run."""

    sources: int = 0
    discovered: int = 0
    duplicates: int = 0
    empty: int = 0
    noise: int = 0
    failed: int = 0
    ingested: int = 0
    enrichment_failed: int = 0
    budget: int = 0
    budget_exhausted: bool = False
    deadline_expired: bool = False
    duration: float = 0.0


class BudgetReached(Exception):
    """Internal signal to leave both loops once the daily budget is spent."""


class IngestionOrchestrator:
    """
    Runs ingestion over every active source.

    Sources are processed in table order and items in feed order; each
    item is committed before the next is looked at. Enrichment of
    committed articles runs concurrently on a bounded pool and is awaited
    before the run returns.
    """

    def __init__(
        self,
        sources: SourceStore,
        articles: ArticleStore,
        fingerprints: FingerprintStore,
        discoverer: FeedDiscoverer,
        scraper: PageScraper,
        enricher: Enricher,
        settings: IngestionConfig,
    ) -> None:
        self.sources = sources
        self.articles = articles
        self.fingerprints = fingerprints
        self.discoverer = discoverer
        self.scraper = scraper
        self.enricher = enricher
        self.settings = settings

    async def run(self, deadline: Optional[Deadline] = None) -> IngestionStats:
        deadline = deadline or Deadline(self.settings.run_timeout)
        stats = IngestionStats()
        started = time.monotonic()

        count = await self.articles.count_today()
        remaining = self.settings.daily_budget - count
        stats.budget = max(remaining, 0)
        if remaining <= 0:
            logger.info("Daily budget of %d articles reached, skipping run", self.settings.daily_budget)
            stats.budget_exhausted = True
            return stats

        sources = await self.sources.list_active()
        stats.sources = len(sources)

        pool = self.enricher.pool()
        try:
            for source in sources:
                if deadline.expired:
                    stats.deadline_expired = True
                    break
                await self._ingest_source(source, remaining, stats, pool, deadline)
        except BudgetReached:
            stats.budget_exhausted = True
            logger.info("Daily budget reached after %d articles", stats.ingested)
        except asyncio.TimeoutError:
            stats.deadline_expired = True

        if stats.deadline_expired:
            logger.warning("Ingestion deadline expired; stopping after %d articles", stats.ingested)

        try:
            await deadline.run(pool.join())
        except asyncio.TimeoutError:
            logger.warning("Deadline expired with enrichment still pending")
            await pool.close()
            stats.deadline_expired = True
        stats.enrichment_failed = pool.failed

        stats.duration = time.monotonic() - started
        logger.info(
            "Ingestion finished: %d new, %d duplicates, %d noise, %d failed in %.1fs",
            stats.ingested,
            stats.duplicates,
            stats.noise,
            stats.failed,
            stats.duration,
        )
        return stats

    async def _ingest_source(
        self,
        source: Source,
        remaining: int,
        stats: IngestionStats,
        pool: WorkerPool,
        deadline: Deadline,
    ) -> None:
        logger.info("Ingesting %s", source.name)
        try:
            async with aclosing(self.discoverer.discover(source)) as items:
                async for item in items:
                    if deadline.expired:
                        raise asyncio.TimeoutError()
                    stats.discovered += 1
                    try:
                        created = await self._ingest_item(source, item, stats, deadline)
                    except psycopg.Error as e:
                        logger.error("%s: storage error on %s: %s", source.name, item.url, e)
                        stats.failed += 1
                        continue
                    if created is None:
                        continue

                    article, raw_html = created
                    stats.ingested += 1
                    pool.submit(EnrichmentTask(article=article, raw_html=raw_html))
                    if stats.ingested >= remaining:
                        raise BudgetReached()
        except MediaWatchError as e:
            logger.log(log_level(e), "%s: discovery failed: %s", source.name, e)

    async def _ingest_item(
        self,
        source: Source,
        item: DiscoveredArticle,
        stats: IngestionStats,
        deadline: Deadline,
    ) -> Optional[Tuple[Article, str]]:
        """Admit one candidate; returns the committed article and its HTML, or None."""
        url_hash = hash_url(item.url)
        exists, blocked = await self.fingerprints.exists_or_blocked(url_hash)
        if exists or blocked:
            logger.debug("Skipping known URL %s (blocked=%s)", item.url, blocked)
            stats.duplicates += 1
            return None

        if item.description:
            title = item.title or ""
            text = item.description
            published = item.published
            image_url = item.image_url
            if not image_url:
                image_url = await deadline.run(self.scraper.extract_image_url(item.url)) or None
            raw_html = ""
        else:
            try:
                scraped = await deadline.run(
                    self.scraper.scrape_article(item.url, source.selectors)
                )
            except MediaWatchError as e:
                logger.log(log_level(e), "Scrape failed for %s: %s", item.url, e)
                stats.failed += 1
                return None
            if scraped.is_empty:
                logger.debug("Nothing extracted from %s", item.url)
                stats.empty += 1
                return None

            title = scraped.title or item.title or ""
            text = scraped.clean_text
            published = scraped.published_at or item.published
            image_url = extract_og_image(scraped.raw_html) or item.image_url
            raw_html = scraped.raw_html

        if is_noise_title(title, self.settings.noise_titles):
            logger.debug("Noise title skipped: %s", title)
            stats.noise += 1
            return None

        try:
            await self.fingerprints.create(url_hash, content_hash=hash_content(text))
        except psycopg.Error as e:
            logger.error("Fingerprint insert failed for %s: %s", item.url, e)
            stats.failed += 1
            return None

        policy = self.settings.default_policy
        created_at = pendulum.now("UTC")
        article = Article(
            id=uuid4(),
            canonical_url=canonicalize_url(item.url),
            url_hash=url_hash,
            title=title,
            clean_text=text,
            published_at=published,
            image_url=image_url,
            source_name=source.name,
            region=source.region,
            evidence_policy=policy,
            evidence_expires_at=policy.expires_at(created_at),
            created_at=created_at,
        )
        try:
            article = await self.articles.create(article)
        except psycopg.Error as e:
            logger.error("Article insert failed for %s: %s", item.url, e)
            stats.failed += 1
            return None

        logger.debug("Committed %s", article.canonical_url)
        return article, raw_html
