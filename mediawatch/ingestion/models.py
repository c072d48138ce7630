"""Data models for ingestion."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DiscoveredArticle(BaseModel):
    """Candidate article yielded by a feed, sitemap or listing page."""

    url: str = Field(..., description="Article URL as published")
    title: Optional[str] = Field(None, description="Feed title")
    description: Optional[str] = Field(None, description="Cleaned feed description")
    published: Optional[datetime] = Field(None, description="Publication date")
    image_url: Optional[str] = Field(None, description="Image from the feed item")


class ScrapedArticle(BaseModel):
    """Result of scraping an article page with CSS selectors."""

    url: str = Field(..., description="Requested URL")
    title: str = Field("", description="Extracted title")
    clean_text: str = Field("", description="Extracted body text")
    published_at: Optional[datetime] = Field(None, description="Extracted date")
    raw_html: str = Field("", description="Full response body")

    @property
    def is_empty(self) -> bool:
        return not self.title.strip() and not self.clean_text.strip()


class WebResult(BaseModel):
    """One result from a search engine or search feed."""

    title: str = Field(..., description="Result title")
    url: str = Field(..., description="Result URL")
    snippet: str = Field("", description="Result snippet")
