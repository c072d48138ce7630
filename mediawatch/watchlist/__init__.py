"""Organization watchlist: mention search, spam filtering and sentiment."""

from .agents import Agent, default_agents
from .keywords import KeywordEnricher, merge_keywords, parse_keywords
from .scanner import ScanStats, WatchlistScanner, build_queries
from .sentiment import SentimentDrafter, parse_sentiment
from .spam import SpamFilter

__all__ = [
    "Agent",
    "KeywordEnricher",
    "ScanStats",
    "SentimentDrafter",
    "SpamFilter",
    "WatchlistScanner",
    "build_queries",
    "default_agents",
    "merge_keywords",
    "parse_keywords",
    "parse_sentiment",
]
