"""Database initialization and schema management."""

import logging
from typing import Any, Dict

import psycopg
from psycopg.errors import DatabaseError

from .connection import DatabaseConfig, get_connection

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE EXTENSION IF NOT EXISTS vector;

-- Sources table
CREATE TABLE IF NOT EXISTS sources (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name TEXT NOT NULL UNIQUE,
    base_url TEXT NOT NULL DEFAULT '',
    region TEXT,
    feed_type TEXT NOT NULL DEFAULT 'rss' CHECK (feed_type IN ('rss', 'sitemap', 'scrape')),
    feed_url TEXT,
    list_urls JSONB NOT NULL DEFAULT '[]',
    link_selector TEXT,
    title_selector TEXT,
    body_selector TEXT,
    date_selector TEXT,
    active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

-- Fingerprints: every URL ever admitted or blocked. Never deleted.
CREATE TABLE IF NOT EXISTS fingerprints (
    url_hash TEXT PRIMARY KEY,
    content_hash TEXT,
    blocked BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

-- Articles table
CREATE TABLE IF NOT EXISTS articles (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    canonical_url TEXT NOT NULL,
    url_hash TEXT NOT NULL UNIQUE,
    title TEXT NOT NULL DEFAULT '',
    clean_text TEXT NOT NULL DEFAULT '',
    published_at TIMESTAMPTZ,
    image_url TEXT,
    source_name TEXT NOT NULL DEFAULT '',
    region TEXT,
    summary TEXT,
    tags JSONB NOT NULL DEFAULT '[]',
    embedding vector,
    status TEXT NOT NULL DEFAULT 'inbox' CHECK (status IN ('inbox', 'saved', 'trashed')),
    pinned BOOLEAN NOT NULL DEFAULT FALSE,
    evidence_policy TEXT NOT NULL DEFAULT 'ret_3m'
        CHECK (evidence_policy IN ('ret_3m', 'ret_6m', 'ret_12m', 'keep')),
    evidence_expires_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_articles_created_at ON articles (created_at DESC);
CREATE INDEX IF NOT EXISTS idx_articles_status ON articles (status, pinned DESC, published_at DESC);
CREATE INDEX IF NOT EXISTS idx_articles_evidence_expires_at
    ON articles (evidence_expires_at) WHERE evidence_expires_at IS NOT NULL;
CREATE INDEX IF NOT EXISTS idx_articles_fts
    ON articles USING GIN (to_tsvector('simple', title || ' ' || clean_text));

-- Watched organizations
CREATE TABLE IF NOT EXISTS watchlist_orgs (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name TEXT NOT NULL,
    website TEXT,
    keywords JSONB NOT NULL DEFAULT '[]',
    video_channels JSONB NOT NULL DEFAULT '[]',
    active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

-- Mentions of watched organizations
CREATE TABLE IF NOT EXISTS watchlist_hits (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    org_id UUID NOT NULL REFERENCES watchlist_orgs(id) ON DELETE CASCADE,
    source_type TEXT NOT NULL
        CHECK (source_type IN ('google_news', 'bing_news', 'web', 'local', 'youtube', 'reddit')),
    title TEXT NOT NULL,
    url TEXT NOT NULL,
    url_hash TEXT NOT NULL UNIQUE,
    snippet TEXT NOT NULL DEFAULT '',
    sentiment TEXT NOT NULL DEFAULT 'unknown'
        CHECK (sentiment IN ('unknown', 'positive', 'neutral', 'negative')),
    ai_draft TEXT,
    seen BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_watchlist_hits_sentiment ON watchlist_hits (sentiment, created_at);
CREATE INDEX IF NOT EXISTS idx_watchlist_hits_org ON watchlist_hits (org_id, created_at DESC);

-- Daily briefs
CREATE TABLE IF NOT EXISTS briefs (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    date DATE NOT NULL UNIQUE,
    summary TEXT NOT NULL,
    top_tags JSONB NOT NULL DEFAULT '[]',
    article_count INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""


async def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        db_config = DatabaseConfig(config)
        async with await psycopg.AsyncConnection.connect(db_config.connection_string) as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1")
        return True
    except psycopg.Error as e:
        logger.error("Database connection failed: %s", e)
        return False


async def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema."""
    try:
        async with get_connection(config) as conn:
            async with conn.cursor() as cur:
                await cur.execute(SCHEMA_SQL)
            await conn.commit()
    except DatabaseError as e:
        raise RuntimeError(f"Failed to initialize database: {e}")
