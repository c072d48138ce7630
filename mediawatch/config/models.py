"""Configuration models."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.enums import EvidencePolicy, FeedType
from . import defaults


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("mediawatch", description="Database name")
    user: str = Field("mediawatch", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")
    sslmode: str = Field("disable", description="libpq sslmode")


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = Field("ollama", description="LLM provider (ollama, openai)")
    base_url: str = Field("http://localhost:11434", description="Inference server base URL")
    instruct_model: str = Field("llama3", description="Default instruction-tuned model")
    embed_model: str = Field("nomic-embed-text", description="Embedding model")
    quality_model: str = Field(
        "llama3.1:8b", description="Higher-capability model for drafts and briefs"
    )
    api_key_env: Optional[str] = Field(None, description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    generate_timeout: float = Field(60.0, description="Deadline per generate call (s)", gt=0)
    embed_timeout: float = Field(30.0, description="Deadline per embed call (s)", gt=0)
    max_input_chars: int = Field(8000, description="AI input truncation", ge=100)

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in ("ollama", "openai"):
            raise ValueError(f"Unknown LLM provider: {v}")
        return v


class StorageConfig(BaseModel):
    """S3-compatible object storage for evidence bundles."""

    endpoint: str = Field("", description="S3 endpoint URL; empty disables evidence storage")
    bucket: str = Field("mediawatch-evidence", description="Bucket name")
    region: str = Field("us-east-1", description="Signing region")
    access_key_env: str = Field("S3_ACCESS_KEY", description="Environment variable for access key")
    secret_key_env: str = Field("S3_SECRET_KEY", description="Environment variable for secret key")


class RegionConfig(BaseModel):
    """Geographic region being monitored."""

    name: str = Field("Puerto Rico", description="Region name appended to search queries")
    code: str = Field("PR", description="Region code for regional search endpoints")
    language: str = Field("español", description="Language for drafts and briefs")
    terms: List[str] = Field(
        default_factory=lambda: list(defaults.REGION_TERMS),
        description="Phrases proving a text is about the region",
    )
    foreign_terms: List[str] = Field(
        default_factory=lambda: list(defaults.FOREIGN_TERMS),
        description="Places commonly conflated with the region",
    )
    nsfw_patterns: List[str] = Field(default_factory=lambda: list(defaults.NSFW_PATTERNS))
    clickbait_patterns: List[str] = Field(
        default_factory=lambda: list(defaults.CLICKBAIT_PATTERNS)
    )
    generic_keywords: List[str] = Field(
        default_factory=lambda: list(defaults.GENERIC_KEYWORDS),
        description="Keywords too generic to track",
    )


class IngestionConfig(BaseModel):
    """Ingestion run limits."""

    daily_budget: int = Field(500, description="Max new articles per UTC day", ge=0)
    enrichment_concurrency: int = Field(3, description="Concurrent enrichment tasks", ge=1)
    default_policy: EvidencePolicy = Field(
        EvidencePolicy.RET_3M, description="Evidence policy for new articles"
    )
    run_timeout: float = Field(3600.0, description="Deadline for one ingestion run (s)", gt=0)
    reenrich_limit: int = Field(100, description="Articles per re-enrichment run", ge=1)
    noise_titles: List[str] = Field(
        default_factory=lambda: list(defaults.NOISE_TITLES),
        description="Title substrings that mark bureaucratic noise",
    )


class ScraperConfig(BaseModel):
    """HTTP fetch policy."""

    user_agent: str = Field(
        "MediaWatch/1.0 (+https://github.com/mediawatch)", description="User-Agent header"
    )
    delay: float = Field(1.0, description="Seconds between requests to one domain", ge=0)
    jitter: float = Field(0.5, description="Random +/- jitter on the delay (s)", ge=0)
    parallelism: int = Field(2, description="Concurrent requests per domain", ge=1)
    page_timeout: float = Field(10.0, description="Article page timeout (s)", gt=0)
    image_timeout: float = Field(10.0, description="Image lookup timeout (s)", gt=0)
    feed_timeout: float = Field(30.0, description="Feed and sitemap timeout (s)", gt=0)
    max_feed_bytes: int = Field(10 * 1024 * 1024, description="Feed and sitemap body cap")
    max_page_text_bytes: int = Field(256 * 1024, description="Page-text fetch body cap")
    max_search_bytes: int = Field(512 * 1024, description="Search result body cap")
    max_redirects: int = Field(1, description="Redirect hops followed for article pages", ge=0)


class WatchlistConfig(BaseModel):
    """Watchlist scan limits."""

    scan_timeout: float = Field(7200.0, description="Deadline for one scan (s)", gt=0)
    agent_timeout: float = Field(30.0, description="Deadline per agent call (s)", gt=0)
    max_results_per_agent: int = Field(10, description="Accepted results per agent per org", ge=1)
    max_keyword_queries: int = Field(4, description="Keyword queries per org", ge=0)
    local_corpus_hours: int = Field(48, description="Look-back for the local corpus agent", ge=1)
    sentiment_batch: int = Field(20, description="Mentions classified per scan", ge=1)
    draft_max_chars: int = Field(2000, description="Cap on PR draft length", ge=200)


class BriefConfig(BaseModel):
    """Daily brief limits."""

    hours: int = Field(24, description="Look-back window", ge=1)
    max_articles: int = Field(60, description="Articles considered", ge=1)
    max_block_chars: int = Field(12000, description="Stop listing articles past this size")
    max_prompt_chars: int = Field(15000, description="Hard cap on the prompt block")
    top_tags: int = Field(10, description="Tags kept in the tally", ge=1)


class ScheduleConfig(BaseModel):
    """Worker job intervals in minutes."""

    ingestion_minutes: int = Field(240, ge=1)
    watchlist_minutes: int = Field(360, ge=1)
    brief_minutes: int = Field(1440, ge=1)
    cleanup_minutes: int = Field(1440, ge=1)
    run_on_start: bool = Field(True, description="Run ingestion immediately on start")
    poll_interval: float = Field(30.0, description="Seconds between due checks", gt=0)


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    region: RegionConfig = Field(default_factory=RegionConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    watchlist: WatchlistConfig = Field(default_factory=WatchlistConfig)
    brief: BriefConfig = Field(default_factory=BriefConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)


class SourceConfig(BaseModel):
    """Source configuration from sources.yaml."""

    name: str = Field(..., description="Source name")
    base_url: str = Field("", description="Outlet home page")
    region: Optional[str] = Field(None, description="Region tag")
    feed_type: FeedType = Field(FeedType.RSS, description="rss, sitemap or scrape")
    feed_url: Optional[str] = Field(None, description="RSS/Atom or sitemap URL")
    list_urls: List[str] = Field(default_factory=list, description="Listing pages (scrape)")
    link_selector: Optional[str] = Field(None, description="CSS selector for links (scrape)")
    title_selector: Optional[str] = Field(None, description="CSS selector for title")
    body_selector: Optional[str] = Field(None, description="CSS selector for body")
    date_selector: Optional[str] = Field(None, description="CSS selector for date")
    active: bool = Field(True, description="Whether source is ingested")
