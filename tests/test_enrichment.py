"""Tests for article enrichment."""

import json

import pytest

from mediawatch.errors import LLMRejected, LLMUnavailable
from mediawatch.evidence import EvidenceStore
from mediawatch.pipeline import Enricher, EnrichmentTask

from conftest import FakeLLM


@pytest.fixture
def article(articles):
    return articles.add(
        title="Gobierno anuncia fondos",
        clean_text="El gobierno anunció fondos para escuelas en San Juan.",
        source_name="News Site",
    )


class TestEnricher:
    """Tests for the four-call enrichment of one article."""

    @pytest.mark.asyncio
    async def test_writes_all_fields(self, llm, articles, article):
        enricher = Enricher(llm, articles, EvidenceStore(None))

        result = await enricher.enrich(EnrichmentTask(article=article))

        stored = articles.rows[article.id]
        assert stored.summary == "Resumen de la noticia."
        assert stored.tags == ["politics", "economy"]
        assert stored.embedding == [0.1, 0.2, 0.3]
        assert result.entities == ["Gobierno", "San Juan"]

    @pytest.mark.asyncio
    async def test_refusal_leaves_summary_empty(self, articles, article):
        llm = FakeLLM(
            {
                "summarize": "No tengo información suficiente para resumir",
                "classify": "health",
                "entities": "none",
            }
        )
        enricher = Enricher(llm, articles, EvidenceStore(None))

        await enricher.enrich(EnrichmentTask(article=article))

        stored = articles.rows[article.id]
        assert not stored.summary
        assert stored.tags == ["health"]

    @pytest.mark.asyncio
    async def test_failed_calls_do_not_block_the_others(self, articles, article):
        llm = FakeLLM(
            {
                "summarize": LLMUnavailable("down"),
                "classify": LLMRejected(500, "boom"),
                "entities": "Gobierno",
            }
        )
        llm.embedding = [1.0]
        enricher = Enricher(llm, articles, EvidenceStore(None))

        result = await enricher.enrich(EnrichmentTask(article=article))

        assert result.summary == ""
        assert result.tags == []
        assert result.entities == ["Gobierno"]
        assert articles.rows[article.id].embedding == [1.0]

    @pytest.mark.asyncio
    async def test_blank_text_is_skipped(self, llm, articles):
        empty = articles.add(title="Only a title", clean_text="   ")
        enricher = Enricher(llm, articles, EvidenceStore(None))

        result = await enricher.enrich(EnrichmentTask(article=empty))

        assert not result.has_updates
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_stores_evidence_bundle(self, llm, articles, article, s3):
        evidence = EvidenceStore(s3, "bucket")
        enricher = Enricher(llm, articles, evidence)

        await enricher.enrich(EnrichmentTask(article=article, raw_html="<html>página</html>"))

        bundle = await evidence.get(article.id)
        assert bundle.raw.decode("utf-8") == "<html>página</html>"
        extracted = json.loads(bundle.extracted)
        assert extracted == {
            "title": "Gobierno anuncia fondos",
            "text": "El gobierno anunció fondos para escuelas en San Juan.",
            "tags": ["politics", "economy"],
            "entities": ["Gobierno", "San Juan"],
            "summary": "Resumen de la noticia.",
        }
        assert "anunció".encode("utf-8") in bundle.extracted

    @pytest.mark.asyncio
    async def test_no_evidence_without_html(self, llm, articles, article, s3):
        enricher = Enricher(llm, articles, EvidenceStore(s3, "bucket"))

        await enricher.enrich(EnrichmentTask(article=article))

        assert s3.keys() == []


class TestReenrich:
    """Tests for the re-enrichment pass."""

    @pytest.mark.asyncio
    async def test_clears_refusals_and_fills_missing(self, llm, articles):
        refused = articles.add(
            title="A",
            clean_text="Texto A",
            summary="I cannot summarize this article",
            tags=["politics"],
        )
        missing = articles.add(title="B", clean_text="Texto B")
        done = articles.add(title="C", clean_text="Texto C", summary="Ya resumido.")
        enricher = Enricher(llm, articles, EvidenceStore(None), concurrency=2)

        count = await enricher.reenrich(limit=10)

        assert count == 2
        assert articles.rows[refused.id].summary == "Resumen de la noticia."
        assert articles.rows[missing.id].summary == "Resumen de la noticia."
        assert articles.rows[done.id].summary == "Ya resumido."

    @pytest.mark.asyncio
    async def test_respects_limit(self, llm, articles):
        for i in range(5):
            articles.add(title=f"A{i}", clean_text=f"Texto {i}")
        enricher = Enricher(llm, articles, EvidenceStore(None))

        assert await enricher.reenrich(limit=3) == 3
