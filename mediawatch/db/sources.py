"""Source management in database."""

from typing import Dict, List
from uuid import UUID

from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from ..config import SourceConfig
from ..models import Source


class SourceStore:
    """Manage sources in database."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self.pool = pool

    async def sync(self, sources: List[SourceConfig]) -> Dict[str, UUID]:
        """
        Sync sources from config to database.

        Returns:
            Mapping of source name to database ID
        """
        source_map = {}

        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                for source in sources:
                    # Upsert source
                    await cur.execute(
                        """
                        INSERT INTO sources (
                            name, base_url, region, feed_type, feed_url, list_urls,
                            link_selector, title_selector, body_selector, date_selector, active
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        ON CONFLICT (name) DO UPDATE SET
                            base_url = EXCLUDED.base_url,
                            region = EXCLUDED.region,
                            feed_type = EXCLUDED.feed_type,
                            feed_url = EXCLUDED.feed_url,
                            list_urls = EXCLUDED.list_urls,
                            link_selector = EXCLUDED.link_selector,
                            title_selector = EXCLUDED.title_selector,
                            body_selector = EXCLUDED.body_selector,
                            date_selector = EXCLUDED.date_selector,
                            active = EXCLUDED.active,
                            updated_at = now()
                        RETURNING id
                        """,
                        (
                            source.name,
                            source.base_url,
                            source.region,
                            source.feed_type.value,
                            source.feed_url,
                            Jsonb(source.list_urls),
                            source.link_selector,
                            source.title_selector,
                            source.body_selector,
                            source.date_selector,
                            source.active,
                        ),
                    )
                    source_map[source.name] = (await cur.fetchone())["id"]

            await conn.commit()
        return source_map

    async def list_active(self) -> List[Source]:
        """Active sources in table order."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "SELECT * FROM sources WHERE active ORDER BY created_at, name"
                )
                rows = await cur.fetchall()
        return [Source(**row) for row in rows]

    async def list_all(self) -> List[Source]:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT * FROM sources ORDER BY name")
                rows = await cur.fetchall()
        return [Source(**row) for row in rows]
