"""Watchlist organization and mention models."""

from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from .base import DBModel
from .enums import MentionSource, Sentiment

SNIPPET_MAX_CHARS = 500


class WatchlistOrg(DBModel):
    """Organization whose mentions are tracked."""

    name: str = Field(..., description="Organization name")
    website: Optional[str] = Field(None, description="Organization website")
    keywords: List[str] = Field(default_factory=list, description="Search keywords")
    video_channels: List[str] = Field(
        default_factory=list, description="Video platform channel ids"
    )
    active: bool = Field(True, description="Whether the org is scanned")


class Mention(DBModel):
    """A discovered item referencing a watched organization."""

    org_id: UUID = Field(..., description="Foreign key to watchlist_orgs")
    source_type: MentionSource = Field(..., description="Agent that found it")
    title: str = Field(..., description="Result title")
    url: str = Field(..., description="Result URL")
    url_hash: str = Field(..., description="SHA-256 hex of the canonical URL")
    snippet: str = Field("", description="Result snippet")
    sentiment: Sentiment = Field(Sentiment.UNKNOWN, description="Sentiment classification")
    ai_draft: Optional[str] = Field(None, description="Suggested PR response")
    seen: bool = Field(False, description="Reviewed by a user")

    @field_validator("snippet", mode="before")
    @classmethod
    def truncate_snippet(cls, v):
        if v is None:
            return ""
        return v[:SNIPPET_MAX_CHARS]
