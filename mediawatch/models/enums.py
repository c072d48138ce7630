"""Closed value sets stored as strings in the database."""

from datetime import datetime
from enum import Enum
from typing import Optional

import pendulum


class ArticleStatus(str, Enum):
    """Triage state of an article."""

    INBOX = "inbox"
    SAVED = "saved"
    TRASHED = "trashed"


class EvidencePolicy(str, Enum):
    """How long the evidence bundle of an article is retained."""

    RET_3M = "ret_3m"
    RET_6M = "ret_6m"
    RET_12M = "ret_12m"
    KEEP = "keep"

    @property
    def months(self) -> Optional[int]:
        """Retention length in months, None for keep."""
        return _POLICY_MONTHS[self]

    def expires_at(self, created_at: datetime) -> Optional[datetime]:
        """Expiry timestamp for an article created at ``created_at``."""
        if self.months is None:
            return None
        return pendulum.instance(created_at).add(months=self.months)


_POLICY_MONTHS = {
    EvidencePolicy.RET_3M: 3,
    EvidencePolicy.RET_6M: 6,
    EvidencePolicy.RET_12M: 12,
    EvidencePolicy.KEEP: None,
}


class FeedType(str, Enum):
    """How a source exposes its article list."""

    RSS = "rss"
    SITEMAP = "sitemap"
    SCRAPE = "scrape"


class Sentiment(str, Enum):
    """Sentiment of a mention towards the watched organization."""

    UNKNOWN = "unknown"
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class MentionSource(str, Enum):
    """Agent that produced a mention."""

    GOOGLE_NEWS = "google_news"
    BING_NEWS = "bing_news"
    WEB = "web"
    LOCAL = "local"
    YOUTUBE = "youtube"
    REDDIT = "reddit"
