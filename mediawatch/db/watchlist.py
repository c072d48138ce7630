"""Watchlist organizations and mentions."""

from typing import List, Optional
from uuid import UUID

from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from ..models import Mention, Sentiment, WatchlistOrg


class OrgStore:
    """CRUD for watched organizations."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self.pool = pool

    async def _fetch(self, sql: str, params: tuple = ()) -> List[WatchlistOrg]:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, params)
                rows = await cur.fetchall()
        return [WatchlistOrg(**row) for row in rows]

    async def list_active(self) -> List[WatchlistOrg]:
        return await self._fetch(
            "SELECT * FROM watchlist_orgs WHERE active ORDER BY created_at, name"
        )

    async def list_all(self) -> List[WatchlistOrg]:
        return await self._fetch("SELECT * FROM watchlist_orgs ORDER BY name")

    async def get(self, org_id: UUID) -> Optional[WatchlistOrg]:
        orgs = await self._fetch("SELECT * FROM watchlist_orgs WHERE id = %s", (org_id,))
        return orgs[0] if orgs else None

    async def create(self, org: WatchlistOrg) -> WatchlistOrg:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO watchlist_orgs (name, website, keywords, video_channels, active)
                    VALUES (%s, %s, %s, %s, %s)
                    RETURNING *
                    """,
                    (
                        org.name,
                        org.website or None,
                        Jsonb(org.keywords),
                        Jsonb(org.video_channels),
                        org.active,
                    ),
                )
                row = await cur.fetchone()
            await conn.commit()
        return WatchlistOrg(**row)

    async def update(self, org: WatchlistOrg) -> None:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    UPDATE watchlist_orgs SET
                        name = %s, website = %s, keywords = %s,
                        video_channels = %s, active = %s, updated_at = now()
                    WHERE id = %s
                    """,
                    (
                        org.name,
                        org.website or None,
                        Jsonb(org.keywords),
                        Jsonb(org.video_channels),
                        org.active,
                        org.id,
                    ),
                )
            await conn.commit()

    async def update_keywords(self, org_id: UUID, keywords: List[str]) -> None:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "UPDATE watchlist_orgs SET keywords = %s, updated_at = now() WHERE id = %s",
                    (Jsonb(keywords), org_id),
                )
            await conn.commit()

    async def delete(self, org_id: UUID) -> None:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("DELETE FROM watchlist_orgs WHERE id = %s", (org_id,))
            await conn.commit()

    async def toggle_active(self, org_id: UUID) -> Optional[bool]:
        """Flip the active flag; returns the new value or None if the org is unknown."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    UPDATE watchlist_orgs SET active = NOT active, updated_at = now()
                    WHERE id = %s
                    RETURNING active
                    """,
                    (org_id,),
                )
                row = await cur.fetchone()
            await conn.commit()
        return row["active"] if row else None


class MentionStore:
    """Mentions of watched organizations, unique by URL hash."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self.pool = pool

    async def create(self, mention: Mention) -> bool:
        """Insert ``mention``; returns False when the URL hash already exists."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO watchlist_hits (
                        org_id, source_type, title, url, url_hash, snippet, sentiment
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (url_hash) DO NOTHING
                    RETURNING id
                    """,
                    (
                        mention.org_id,
                        mention.source_type.value,
                        mention.title,
                        mention.url,
                        mention.url_hash,
                        mention.snippet,
                        mention.sentiment.value,
                    ),
                )
                row = await cur.fetchone()
            await conn.commit()
        return row is not None

    async def list_by_sentiment(self, sentiment: Sentiment, limit: int = 20) -> List[Mention]:
        """Oldest first so a backlog drains in arrival order."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT * FROM watchlist_hits
                    WHERE sentiment = %s
                    ORDER BY created_at
                    LIMIT %s
                    """,
                    (Sentiment(sentiment).value, limit),
                )
                rows = await cur.fetchall()
        return [Mention(**row) for row in rows]

    async def list_recent(self, org_id: Optional[UUID] = None, limit: int = 50) -> List[Mention]:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT * FROM watchlist_hits
                    WHERE %s::uuid IS NULL OR org_id = %s::uuid
                    ORDER BY created_at DESC
                    LIMIT %s
                    """,
                    (org_id, org_id, limit),
                )
                rows = await cur.fetchall()
        return [Mention(**row) for row in rows]

    async def update_sentiment(self, mention_id: UUID, sentiment: Sentiment) -> None:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "UPDATE watchlist_hits SET sentiment = %s WHERE id = %s",
                    (Sentiment(sentiment).value, mention_id),
                )
            await conn.commit()

    async def update_ai_draft(self, mention_id: UUID, draft: str) -> None:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "UPDATE watchlist_hits SET ai_draft = %s WHERE id = %s",
                    (draft or None, mention_id),
                )
            await conn.commit()

    async def mark_seen(self, mention_id: UUID) -> None:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "UPDATE watchlist_hits SET seen = TRUE WHERE id = %s",
                    (mention_id,),
                )
            await conn.commit()
