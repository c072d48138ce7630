"""Test configuration and fixtures."""

import io
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Union
from uuid import uuid4

import httpx
import pytest
from botocore.exceptions import ClientError

from mediawatch.ai import LLMProvider, is_garbage
from mediawatch.ai import prompts
from mediawatch.config import ConfigModel, ScraperConfig
from mediawatch.models import Article, Brief, Mention, Sentiment, Source


class FakeLLM(LLMProvider):
    """Provider answering from a table keyed by prompt kind.

    Kinds are summarize, classify, entities, sentiment, draft, keywords and
    brief. A value that is an exception instance is raised instead.
    """

    KINDS = {
        "summarize": prompts.SUMMARIZE_SYSTEM,
        "classify": prompts.CLASSIFY_SYSTEM,
        "entities": prompts.ENTITIES_SYSTEM,
        "sentiment": prompts.SENTIMENT_SYSTEM,
        "draft": prompts.DRAFT_SYSTEM,
        "keywords": prompts.KEYWORDS_SYSTEM,
        "brief": prompts.BRIEF_SYSTEM,
    }

    def __init__(self, responses: Optional[Dict[str, Union[str, Exception]]] = None, **kwargs) -> None:
        kwargs.setdefault("instruct_model", "fake-instruct")
        kwargs.setdefault("embed_model", "fake-embed")
        kwargs.setdefault("quality_model", "fake-quality")
        super().__init__(**kwargs)
        self.responses = dict(responses or {})
        self.embedding: Union[List[float], Exception] = [0.1, 0.2, 0.3]
        self.calls: List[tuple] = []

    def kind(self, system: str) -> str:
        for kind, template in self.KINDS.items():
            if system.startswith(template.split("{")[0]):
                return kind
        return "unknown"

    async def _complete(self, model: str, system: str, prompt: str) -> str:
        kind = self.kind(system)
        self.calls.append((kind, model, prompt))
        response = self.responses.get(kind, "")
        if isinstance(response, Exception):
            raise response
        return response

    async def _embed(self, model: str, text: str) -> List[float]:
        self.calls.append(("embed", model, text))
        if isinstance(self.embedding, Exception):
            raise self.embedding
        return self.embedding

    def calls_of(self, kind: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == kind]


class FakeArticleStore:
    """In-memory ArticleStore."""

    def __init__(self, today_count: int = 0) -> None:
        self.today_count = today_count
        self.rows: Dict = {}

    async def create(self, article: Article) -> Article:
        article = article.model_copy(
            update={
                "id": article.id or uuid4(),
                "created_at": article.created_at or datetime.now(timezone.utc),
            }
        )
        self.rows[article.id] = article
        return article

    def add(self, **fields) -> Article:
        fields.setdefault("canonical_url", f"https://news.example.com/{uuid4()}")
        fields.setdefault("url_hash", uuid4().hex)
        fields.setdefault("id", uuid4())
        fields.setdefault("created_at", datetime.now(timezone.utc))
        article = Article(**fields)
        self.rows[article.id] = article
        return article

    async def get_by_id(self, article_id) -> Optional[Article]:
        return self.rows.get(article_id)

    async def count_today(self) -> int:
        return self.today_count + len(self.rows)

    async def list_recent(self, hours: int, limit: Optional[int] = None) -> List[Article]:
        rows = sorted(self.rows.values(), key=lambda a: a.created_at, reverse=True)
        return rows[:limit] if limit else rows

    async def list_needing_enrichment(self, limit: int) -> List[Article]:
        return [a for a in self.rows.values() if not a.summary and a.clean_text][:limit]

    async def list_expired_evidence(self, limit: int = 500) -> List[Article]:
        now = datetime.now(timezone.utc)
        return [
            a
            for a in self.rows.values()
            if a.evidence_expires_at is not None and a.evidence_expires_at < now
        ][:limit]

    async def update_enrichment(self, article_id, summary, tags, embedding) -> None:
        article = self.rows[article_id]
        update = {}
        if summary:
            update["summary"] = summary
        if tags:
            update["tags"] = list(tags)
        if embedding:
            update["embedding"] = list(embedding)
        self.rows[article_id] = article.model_copy(update=update)

    async def clear_evidence_expiry(self, article_id) -> None:
        self.rows[article_id] = self.rows[article_id].model_copy(update={"evidence_expires_at": None})

    async def clear_garbage_enrichment(self) -> int:
        cleared = 0
        for article_id, article in list(self.rows.items()):
            if article.summary and is_garbage(article.summary):
                self.rows[article_id] = article.model_copy(update={"summary": None, "tags": []})
                cleared += 1
        return cleared


class FakeFingerprintStore:
    def __init__(self) -> None:
        self.rows: Dict[str, dict] = {}

    async def exists_or_blocked(self, url_hash: str):
        row = self.rows.get(url_hash)
        if row is None:
            return False, False
        return True, row["blocked"]

    async def create(self, url_hash: str, content_hash: Optional[str] = None, blocked: bool = False) -> None:
        self.rows[url_hash] = {"content_hash": content_hash, "blocked": blocked}


class FakeSourceStore:
    def __init__(self, sources: List[Source]) -> None:
        self.sources = sources

    async def list_active(self) -> List[Source]:
        return [s for s in self.sources if s.active]


class FakeOrgStore:
    def __init__(self, orgs) -> None:
        self.orgs = orgs

    async def list_active(self):
        return [o for o in self.orgs if o.active]


class FakeMentionStore:
    """In-memory MentionStore enforcing url_hash uniqueness."""

    def __init__(self) -> None:
        self.rows: Dict[str, Mention] = {}

    async def create(self, mention: Mention) -> bool:
        if mention.url_hash in self.rows:
            return False
        self.rows[mention.url_hash] = mention.model_copy(
            update={"id": uuid4(), "created_at": datetime.now(timezone.utc)}
        )
        return True

    def _find(self, mention_id) -> str:
        for url_hash, mention in self.rows.items():
            if mention.id == mention_id:
                return url_hash
        raise KeyError(mention_id)

    async def list_by_sentiment(self, sentiment: Sentiment, limit: int = 20) -> List[Mention]:
        return [m for m in self.rows.values() if m.sentiment == sentiment][:limit]

    async def update_sentiment(self, mention_id, sentiment: Sentiment) -> None:
        key = self._find(mention_id)
        self.rows[key] = self.rows[key].model_copy(update={"sentiment": sentiment})

    async def update_ai_draft(self, mention_id, draft: str) -> None:
        key = self._find(mention_id)
        self.rows[key] = self.rows[key].model_copy(update={"ai_draft": draft})

    @property
    def mentions(self) -> List[Mention]:
        return list(self.rows.values())


class FakeBriefStore:
    def __init__(self) -> None:
        self.briefs: List[Brief] = []

    async def create(self, brief: Brief) -> Brief:
        brief = brief.model_copy(update={"id": uuid4(), "created_at": datetime.now(timezone.utc)})
        self.briefs.append(brief)
        return brief


class FakeS3:
    """The three boto3 S3 calls the evidence store makes."""

    def __init__(self) -> None:
        self.objects: Dict[tuple, bytes] = {}
        self.content_types: Dict[tuple, str] = {}

    def put_object(self, Bucket, Key, Body, ContentType, ContentEncoding=None):
        self.objects[(Bucket, Key)] = Body
        self.content_types[(Bucket, Key)] = ContentType
        return {}

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": Key}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}

    def delete_object(self, Bucket, Key):
        self.objects.pop((Bucket, Key), None)
        return {}

    def keys(self) -> List[str]:
        return sorted(key for _, key in self.objects)


Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def route_transport(routes: Dict[str, Route]) -> httpx.MockTransport:
    """Answer by exact URL, then by URL without query; 404 otherwise."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        route = routes.get(url) or routes.get(url.split("?")[0])
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return route

    return httpx.MockTransport(handler)


@pytest.fixture
def settings() -> ConfigModel:
    """Default configuration with politeness delays switched off."""
    return ConfigModel(scraper=ScraperConfig(delay=0, jitter=0))


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM(
        {
            "summarize": "Resumen de la noticia.",
            "classify": "politics, economy",
            "entities": "Gobierno, San Juan",
        }
    )


@pytest.fixture
def articles() -> FakeArticleStore:
    return FakeArticleStore()


@pytest.fixture
def fingerprints() -> FakeFingerprintStore:
    return FakeFingerprintStore()


@pytest.fixture
def mentions() -> FakeMentionStore:
    return FakeMentionStore()


@pytest.fixture
def s3() -> FakeS3:
    return FakeS3()


@pytest.fixture
def make_client():
    """Factory for an AsyncClient answering from a route table."""
    def factory(routes: Dict[str, Route]) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=route_transport(routes), follow_redirects=True)
        return client

    return factory
