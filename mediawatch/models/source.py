"""Source model for configured upstreams."""

from typing import List, Optional

from pydantic import BaseModel, Field

from .base import DBModel
from .enums import FeedType


class Source(DBModel):
    """Upstream news source."""

    name: str = Field(..., description="Source name")
    base_url: str = Field("", description="Home page of the outlet")
    region: Optional[str] = Field(None, description="Region tag")
    feed_type: FeedType = Field(FeedType.RSS, description="rss, sitemap or scrape")
    feed_url: Optional[str] = Field(None, description="RSS/Atom or sitemap URL")
    list_urls: List[str] = Field(default_factory=list, description="Listing pages to scrape")
    link_selector: Optional[str] = Field(None, description="CSS selector for article links")
    title_selector: Optional[str] = Field(None, description="CSS selector for the title")
    body_selector: Optional[str] = Field(None, description="CSS selector for body paragraphs")
    date_selector: Optional[str] = Field(None, description="CSS selector for the date")
    active: bool = Field(True, description="Whether the source is ingested")

    @property
    def selectors(self) -> "Selectors":
        return Selectors(
            title=self.title_selector or "",
            body=self.body_selector or "",
            date=self.date_selector or "",
        )


class Selectors(BaseModel):
    """CSS selectors used by the page scraper."""

    title: str = ""
    body: str = ""
    date: str = ""
