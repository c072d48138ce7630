"""Article model for ingested and enriched articles."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .base import DBModel
from .enums import ArticleStatus, EvidencePolicy


class Article(DBModel):
    """Article model."""

    canonical_url: str = Field(..., description="Normalized article URL")
    url_hash: str = Field(..., description="SHA-256 hex of the canonical URL")
    title: str = Field("", description="Article title")
    clean_text: str = Field("", description="HTML-stripped, whitespace-normalized text")
    published_at: Optional[datetime] = Field(None, description="Publication timestamp")
    image_url: Optional[str] = Field(None, description="Lead image URL")
    source_name: str = Field("", description="Name of the source that produced it")
    region: Optional[str] = Field(None, description="Region tag of the source")
    summary: Optional[str] = Field(None, description="LLM summary")
    tags: List[str] = Field(default_factory=list, description="Taxonomy tags")
    embedding: Optional[List[float]] = Field(None, description="Embedding vector")
    status: ArticleStatus = Field(ArticleStatus.INBOX, description="Triage status")
    pinned: bool = Field(False, description="Pinned to the top of lists")
    evidence_policy: EvidencePolicy = Field(
        EvidencePolicy.RET_3M, description="Evidence retention policy"
    )
    evidence_expires_at: Optional[datetime] = Field(
        None, description="When the evidence bundle may be deleted"
    )

    @field_validator("image_url", "summary", "region", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty strings and the literal "null" as absent."""
        if isinstance(v, str) and v.strip() in ("", "null"):
            return None
        return v

    @field_validator("embedding", mode="before")
    @classmethod
    def parse_vector(cls, v):
        """Accept pgvector's text form ("[0.1,0.2]") as well as a list."""
        if isinstance(v, str):
            inner = v.strip().strip("[]")
            return [float(x) for x in inner.split(",") if x.strip()]
        return v
