"""Fingerprint index: seen and blocked URL hashes."""

from typing import Optional, Tuple

from psycopg_pool import AsyncConnectionPool


class FingerprintStore:
    """Set of URL fingerprints admitted or blocked across runs."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self.pool = pool

    async def exists_or_blocked(self, url_hash: str) -> Tuple[bool, bool]:
        """Return ``(exists, blocked)`` for ``url_hash``."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    "SELECT blocked FROM fingerprints WHERE url_hash = %s",
                    (url_hash,),
                )
                row = await cur.fetchone()
        if row is None:
            return False, False
        return True, row["blocked"]

    async def create(
        self,
        url_hash: str,
        content_hash: Optional[str] = None,
        blocked: bool = False,
    ) -> None:
        """Insert a fingerprint; the caller has checked it does not exist."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO fingerprints (url_hash, content_hash, blocked)
                    VALUES (%s, %s, %s)
                    """,
                    (url_hash, content_hash, blocked),
                )
            await conn.commit()

    async def block(self, url_hash: str) -> None:
        """Mark ``url_hash`` as blocked, creating the fingerprint if needed."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO fingerprints (url_hash, blocked)
                    VALUES (%s, TRUE)
                    ON CONFLICT (url_hash) DO UPDATE SET blocked = TRUE
                    """,
                    (url_hash,),
                )
            await conn.commit()
