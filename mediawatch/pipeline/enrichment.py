"""AI enrichment of committed articles."""

import json
import logging
from typing import List, Optional

import psycopg
from pydantic import BaseModel

from ..ai import LLMProvider
from ..db import ArticleStore
from ..errors import MediaWatchError, log_level
from ..evidence import EvidenceStore
from ..models import Article
from .pool import WorkerPool

logger = logging.getLogger(__name__)


class EnrichmentTask(BaseModel):
    """An article queued for enrichment with the HTML it was captured from.

    ``raw_html`` is None for re-enrichment, which never writes evidence.
    """

    article: Article
    raw_html: Optional[str] = None


class EnrichmentResult(BaseModel):
    summary: str = ""
    tags: List[str] = []
    entities: List[str] = []
    embedding: Optional[List[float]] = None

    @property
    def has_updates(self) -> bool:
        return bool(self.summary or self.tags or self.embedding)


class Enricher:
    """Summarize, tag, extract entities and embed one article at a time."""

    def __init__(
        self,
        llm: LLMProvider,
        articles: ArticleStore,
        evidence: EvidenceStore,
        concurrency: int = 3,
    ) -> None:
        self.llm = llm
        self.articles = articles
        self.evidence = evidence
        self.concurrency = concurrency

    def _log_failure(self, step: str, article: Article, error: Exception) -> None:
        logger.log(log_level(error), "%s: %s failed: %s", article.id, step, error)

    async def analyze(self, article: Article) -> EnrichmentResult:
        """Run the four AI calls; a failing call leaves its field empty."""
        text = self.llm.truncate(article.clean_text)
        result = EnrichmentResult()

        try:
            result.summary = await self.llm.summarize(text)
        except MediaWatchError as e:
            self._log_failure("summarize", article, e)
        try:
            result.tags = await self.llm.classify(text)
        except MediaWatchError as e:
            self._log_failure("classify", article, e)
        try:
            result.entities = await self.llm.extract_entities(text)
        except MediaWatchError as e:
            self._log_failure("entities", article, e)
        try:
            result.embedding = await self.llm.embed(text)
        except MediaWatchError as e:
            self._log_failure("embed", article, e)

        return result

    async def enrich(self, task: EnrichmentTask) -> EnrichmentResult:
        article = task.article
        if not article.clean_text.strip():
            logger.debug("%s: no text to enrich", article.id)
            return EnrichmentResult()

        result = await self.analyze(article)

        if result.has_updates:
            try:
                await self.articles.update_enrichment(
                    article.id,
                    summary=result.summary or None,
                    tags=result.tags or None,
                    embedding=result.embedding,
                )
            except psycopg.Error as e:
                logger.error("%s: failed to save enrichment: %s", article.id, e)

        if self.evidence.configured and task.raw_html is not None:
            extracted = json.dumps(
                {
                    "title": article.title,
                    "text": article.clean_text,
                    "tags": result.tags,
                    "entities": result.entities,
                    "summary": result.summary,
                },
                ensure_ascii=False,
            )
            try:
                await self.evidence.store(
                    article.id,
                    article.evidence_policy,
                    task.raw_html.encode("utf-8"),
                    extracted.encode("utf-8"),
                )
            except MediaWatchError as e:
                logger.error("%s: failed to store evidence: %s", article.id, e)

        return result

    def pool(self) -> WorkerPool[EnrichmentTask]:
        return WorkerPool(self.enrich, concurrency=self.concurrency, name="enrich")

    async def reenrich(self, limit: int = 100) -> int:
        """
        Clear refusal summaries, then enrich articles that still lack one.

        Returns the number of articles queued.
        """
        cleared = await self.articles.clear_garbage_enrichment()
        if cleared:
            logger.info("Cleared garbage enrichment on %d articles", cleared)

        pending = await self.articles.list_needing_enrichment(limit)
        async with self.pool() as pool:
            for article in pending:
                pool.submit(EnrichmentTask(article=article))

        logger.info("Re-enriched %d articles", len(pending))
        return len(pending)
