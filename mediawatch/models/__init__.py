"""Data models for the monitoring pipeline."""

from .article import Article
from .brief import Brief
from .enums import ArticleStatus, EvidencePolicy, FeedType, MentionSource, Sentiment
from .source import Selectors, Source
from .watchlist import Mention, WatchlistOrg

__all__ = [
    "Article",
    "ArticleStatus",
    "Brief",
    "EvidencePolicy",
    "FeedType",
    "Mention",
    "MentionSource",
    "Selectors",
    "Sentiment",
    "Source",
    "WatchlistOrg",
]
