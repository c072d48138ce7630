"""Daily brief model."""

import datetime
from typing import List

from pydantic import Field

from .base import DBModel


class Brief(DBModel):
    """Thematic summary of one day's articles."""

    date: datetime.date = Field(..., description="UTC day the brief covers")
    summary: str = Field(..., description="Brief text")
    top_tags: List[str] = Field(default_factory=list, description="Most frequent tags")
    article_count: int = Field(0, description="Articles considered")
