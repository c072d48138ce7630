"""Wiring of configuration into stores, HTTP clients and jobs."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from psycopg_pool import AsyncConnectionPool

from .ai import LLMProvider, create_llm_provider
from .config import Config, ConfigModel
from .db import (
    ArticleStore,
    BriefStore,
    FingerprintStore,
    MentionStore,
    OrgStore,
    SourceStore,
    close_connection_pool,
    get_connection_pool,
)
from .evidence import EvidenceStore, create_s3_client
from .ingestion import DomainRateLimiter, FeedDiscoverer, PageScraper, WebSearch
from .pipeline import (
    DailyBriefGenerator,
    Deadline,
    Enricher,
    IngestionOrchestrator,
    ScheduledJob,
    Scheduler,
    run_evidence_cleanup,
)
from .watchlist import (
    KeywordEnricher,
    SentimentDrafter,
    SpamFilter,
    WatchlistScanner,
    default_agents,
)

logger = logging.getLogger(__name__)

BRIEF_TIMEOUT = 10 * 60
CLEANUP_TIMEOUT = 30 * 60


class Runtime:
    """Everything a job needs, built once per process."""

    def __init__(
        self,
        settings: ConfigModel,
        pool: AsyncConnectionPool,
        http: httpx.AsyncClient,
        llm: LLMProvider,
        evidence: EvidenceStore,
    ) -> None:
        self.settings = settings
        self.pool = pool
        self.http = http
        self.llm = llm
        self.evidence = evidence

        self.articles = ArticleStore(pool)
        self.sources = SourceStore(pool)
        self.fingerprints = FingerprintStore(pool)
        self.orgs = OrgStore(pool)
        self.mentions = MentionStore(pool)
        self.briefs = BriefStore(pool)

        scraper_settings = settings.scraper
        self.scraper = PageScraper(
            http,
            scraper_settings,
            DomainRateLimiter(
                delay=scraper_settings.delay,
                jitter=scraper_settings.jitter,
                parallelism=scraper_settings.parallelism,
            ),
        )
        self.discoverer = FeedDiscoverer(http, scraper_settings, self.scraper)
        self.search = WebSearch(http, scraper_settings, self.discoverer)

    def enricher(self) -> Enricher:
        return Enricher(
            self.llm,
            self.articles,
            self.evidence,
            concurrency=self.settings.ingestion.enrichment_concurrency,
        )

    def orchestrator(self) -> IngestionOrchestrator:
        return IngestionOrchestrator(
            sources=self.sources,
            articles=self.articles,
            fingerprints=self.fingerprints,
            discoverer=self.discoverer,
            scraper=self.scraper,
            enricher=self.enricher(),
            settings=self.settings.ingestion,
        )

    def scanner(self) -> WatchlistScanner:
        watchlist = self.settings.watchlist
        region = self.settings.region
        return WatchlistScanner(
            orgs=self.orgs,
            mentions=self.mentions,
            agents=default_agents(
                self.discoverer,
                self.search,
                self.articles,
                region,
                max_results=watchlist.max_results_per_agent,
                local_hours=watchlist.local_corpus_hours,
            ),
            spam_filter=SpamFilter(region),
            drafter=SentimentDrafter(self.llm, self.mentions, watchlist, region),
            settings=watchlist,
            region=region,
        )

    def brief_generator(self) -> DailyBriefGenerator:
        return DailyBriefGenerator(
            self.llm, self.articles, self.briefs, self.settings.brief, self.settings.region
        )

    def keyword_enricher(self) -> KeywordEnricher:
        return KeywordEnricher(self.llm, self.scraper, self.search, self.settings.region)

    async def cleanup(self, deadline: Optional[Deadline] = None) -> int:
        return await run_evidence_cleanup(self.articles, self.evidence, deadline=deadline)

    def scheduler(self) -> Scheduler:
        """Worker with the ingestion, watchlist, brief and cleanup jobs."""
        schedule = self.settings.schedule
        jobs = [
            ScheduledJob(
                "ingestion",
                lambda deadline: self.orchestrator().run(deadline),
                interval=schedule.ingestion_minutes * 60,
                timeout=self.settings.ingestion.run_timeout,
                run_on_start=schedule.run_on_start,
            ),
            ScheduledJob(
                "watchlist",
                lambda deadline: self.scanner().run(deadline),
                interval=schedule.watchlist_minutes * 60,
                timeout=self.settings.watchlist.scan_timeout,
            ),
            ScheduledJob(
                "brief",
                lambda deadline: self.brief_generator().generate(),
                interval=schedule.brief_minutes * 60,
                timeout=BRIEF_TIMEOUT,
            ),
            ScheduledJob(
                "evidence-cleanup",
                self.cleanup,
                interval=schedule.cleanup_minutes * 60,
                timeout=CLEANUP_TIMEOUT,
            ),
        ]
        return Scheduler(jobs, poll_interval=schedule.poll_interval)


@asynccontextmanager
async def open_runtime(config: Config) -> AsyncIterator[Runtime]:
    """Open the database pool, HTTP client and providers; close them on exit."""
    settings = config.config
    pool = await get_connection_pool(config.get_db_config())
    http = httpx.AsyncClient(follow_redirects=True, timeout=None)
    llm = create_llm_provider(config.get_llm_config(), http)
    evidence = EvidenceStore(
        create_s3_client(config.get_storage_config()), bucket=settings.storage.bucket
    )
    if not evidence.configured:
        logger.info("Object storage not configured; evidence capture disabled")

    try:
        yield Runtime(settings, pool, http, llm, evidence)
    finally:
        await llm.aclose()
        await http.aclose()
        await close_connection_pool()
