"""Daily brief storage."""

from typing import List, Optional

from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from ..models import Brief


class BriefStore:
    """Briefs, one per UTC day."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self.pool = pool

    async def create(self, brief: Brief) -> Brief:
        """Insert or replace the brief for ``brief.date``."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO briefs (date, summary, top_tags, article_count)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (date) DO UPDATE SET
                        summary = EXCLUDED.summary,
                        top_tags = EXCLUDED.top_tags,
                        article_count = EXCLUDED.article_count,
                        created_at = now()
                    RETURNING *
                    """,
                    (brief.date, brief.summary, Jsonb(brief.top_tags), brief.article_count),
                )
                row = await cur.fetchone()
            await conn.commit()
        return Brief(**row)

    async def get_latest(self) -> Optional[Brief]:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT * FROM briefs ORDER BY date DESC LIMIT 1")
                row = await cur.fetchone()
        return Brief(**row) if row else None

    async def list(self, limit: int = 30) -> List[Brief]:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT * FROM briefs ORDER BY date DESC LIMIT %s", (limit,))
                rows = await cur.fetchall()
        return [Brief(**row) for row in rows]
