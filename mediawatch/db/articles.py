"""Article storage."""

from typing import List, Optional, Sequence
from uuid import UUID

from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from ..ai.sanitize import GARBAGE_PATTERNS
from ..models import Article, ArticleStatus, EvidencePolicy


def none_if_blank(value: Optional[str]) -> Optional[str]:
    """Map '' and the literal "null" to SQL NULL."""
    if value is None or value.strip() in ("", "null"):
        return None
    return value


def format_vector(values: Optional[Sequence[float]]) -> Optional[str]:
    """pgvector text literal for ``values``."""
    if not values:
        return None
    return "[" + ",".join(repr(float(v)) for v in values) + "]"


_SELECT = """
    SELECT id, canonical_url, url_hash, title, clean_text, published_at, image_url,
           source_name, region, summary, tags, embedding::text AS embedding, status,
           pinned, evidence_policy, evidence_expires_at, created_at
    FROM articles
"""


class ArticleStore:
    """Typed operations on the articles table."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self.pool = pool

    async def create(self, article: Article) -> Article:
        """Insert ``article``; created_at and evidence expiry are taken from the model."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO articles (
                        id, canonical_url, url_hash, title, clean_text, published_at,
                        image_url, source_name, region, summary, tags, status, pinned,
                        evidence_policy, evidence_expires_at, created_at
                    )
                    VALUES (
                        COALESCE(%s, gen_random_uuid()), %s, %s, %s, %s, %s,
                        %s, %s, %s, %s, %s, %s, %s,
                        %s, %s, COALESCE(%s, now())
                    )
                    RETURNING id, created_at
                    """,
                    (
                        article.id,
                        article.canonical_url,
                        article.url_hash,
                        article.title,
                        article.clean_text,
                        article.published_at,
                        none_if_blank(article.image_url),
                        article.source_name,
                        none_if_blank(article.region),
                        none_if_blank(article.summary),
                        Jsonb(article.tags),
                        article.status.value,
                        article.pinned,
                        article.evidence_policy.value,
                        article.evidence_expires_at,
                        article.created_at,
                    ),
                )
                row = await cur.fetchone()
            await conn.commit()

        return article.model_copy(update={"id": row["id"], "created_at": row["created_at"]})

    async def get_by_id(self, article_id: UUID) -> Optional[Article]:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(_SELECT + " WHERE id = %s", (article_id,))
                row = await cur.fetchone()
        return Article(**row) if row else None

    async def list_by_status(
        self, status: ArticleStatus, limit: int = 50, offset: int = 0
    ) -> List[Article]:
        """Pinned first, then newest publication date."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    _SELECT
                    + """
                    WHERE status = %s
                    ORDER BY pinned DESC, published_at DESC NULLS LAST, created_at DESC
                    LIMIT %s OFFSET %s
                    """,
                    (ArticleStatus(status).value, limit, offset),
                )
                rows = await cur.fetchall()
        return [Article(**row) for row in rows]

    async def list_recent(self, hours: int, limit: Optional[int] = None) -> List[Article]:
        """Articles created within the last ``hours`` hours, newest first."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    _SELECT
                    + """
                    WHERE created_at >= now() - make_interval(hours => %s)
                    ORDER BY created_at DESC
                    LIMIT %s
                    """,
                    (hours, limit),
                )
                rows = await cur.fetchall()
        return [Article(**row) for row in rows]

    async def list_needing_enrichment(self, limit: int) -> List[Article]:
        """Articles with text but no summary."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    _SELECT
                    + """
                    WHERE (summary IS NULL OR summary = '') AND clean_text <> ''
                    ORDER BY created_at DESC
                    LIMIT %s
                    """,
                    (limit,),
                )
                rows = await cur.fetchall()
        return [Article(**row) for row in rows]

    async def list_expired_evidence(self, limit: int = 500) -> List[Article]:
        """Articles whose evidence retention has elapsed."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    _SELECT
                    + """
                    WHERE evidence_expires_at < now() AND evidence_policy <> 'keep'
                    ORDER BY evidence_expires_at
                    LIMIT %s
                    """,
                    (limit,),
                )
                rows = await cur.fetchall()
        return [Article(**row) for row in rows]

    async def _update(self, sql: str, params: tuple) -> int:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, params)
                count = cur.rowcount
            await conn.commit()
        return count

    async def update_status(self, article_id: UUID, status: ArticleStatus) -> None:
        await self._update(
            "UPDATE articles SET status = %s, updated_at = now() WHERE id = %s",
            (ArticleStatus(status).value, article_id),
        )

    async def set_pinned(self, article_id: UUID, pinned: bool) -> None:
        await self._update(
            "UPDATE articles SET pinned = %s, updated_at = now() WHERE id = %s",
            (pinned, article_id),
        )

    async def update_enrichment(
        self,
        article_id: UUID,
        summary: Optional[str],
        tags: Optional[List[str]],
        embedding: Optional[Sequence[float]],
    ) -> None:
        """Write the enrichment fields in one statement; None leaves a field as is."""
        await self._update(
            """
            UPDATE articles SET
                summary = COALESCE(%s, summary),
                tags = COALESCE(%s, tags),
                embedding = COALESCE(%s::vector, embedding),
                updated_at = now()
            WHERE id = %s
            """,
            (
                none_if_blank(summary),
                Jsonb(tags) if tags else None,
                format_vector(embedding),
                article_id,
            ),
        )

    async def update_retention(self, article_id: UUID, policy: EvidencePolicy) -> None:
        """Change the policy and recompute expiry from created_at."""
        policy = EvidencePolicy(policy)
        await self._update(
            """
            UPDATE articles SET
                evidence_policy = %s,
                evidence_expires_at = CASE
                    WHEN %s::int IS NULL THEN NULL
                    ELSE created_at + make_interval(months => %s::int)
                END,
                updated_at = now()
            WHERE id = %s
            """,
            (policy.value, policy.months, policy.months, article_id),
        )

    async def set_image_url(self, article_id: UUID, image_url: Optional[str]) -> None:
        await self._update(
            "UPDATE articles SET image_url = %s, updated_at = now() WHERE id = %s",
            (none_if_blank(image_url), article_id),
        )

    async def clear_evidence_expiry(self, article_id: UUID) -> None:
        await self._update(
            "UPDATE articles SET evidence_expires_at = NULL, updated_at = now() WHERE id = %s",
            (article_id,),
        )

    async def clear_garbage_enrichment(self) -> int:
        """Blank summary and tags wherever the summary contains a refusal phrase."""
        patterns = [f"%{pattern}%" for pattern in GARBAGE_PATTERNS]
        return await self._update(
            """
            UPDATE articles SET summary = NULL, tags = '[]', updated_at = now()
            WHERE summary IS NOT NULL AND lower(summary) LIKE ANY(%s)
            """,
            (patterns,),
        )

    async def count_today(self) -> int:
        """Articles created since the start of the current UTC day."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    SELECT count(*) AS count FROM articles
                    WHERE created_at >= date_trunc('day', now() AT TIME ZONE 'UTC') AT TIME ZONE 'UTC'
                    """
                )
                row = await cur.fetchone()
        return row["count"]

    async def exists_by_url(self, url_hash: str) -> bool:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1 FROM articles WHERE url_hash = %s", (url_hash,))
                return await cur.fetchone() is not None

    async def search(self, query: str, limit: int = 50) -> List[Article]:
        """Full-text search over title and text."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    _SELECT
                    + """
                    WHERE to_tsvector('simple', title || ' ' || clean_text)
                          @@ plainto_tsquery('simple', %s)
                    ORDER BY ts_rank(to_tsvector('simple', title || ' ' || clean_text),
                                     plainto_tsquery('simple', %s)) DESC
                    LIMIT %s
                    """,
                    (query, query, limit),
                )
                rows = await cur.fetchall()
        return [Article(**row) for row in rows]

    async def similar_articles(self, article_id: UUID, limit: int = 5) -> List[Article]:
        """Nearest neighbours by cosine distance over embeddings."""
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    _SELECT
                    + """
                    WHERE id <> %s AND embedding IS NOT NULL
                    ORDER BY embedding <=> (SELECT embedding FROM articles WHERE id = %s)
                    LIMIT %s
                    """,
                    (article_id, article_id, limit),
                )
                rows = await cur.fetchall()
        return [Article(**row) for row in rows]
