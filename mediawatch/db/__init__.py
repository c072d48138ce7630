"""Database management."""

from .articles import ArticleStore
from .briefs import BriefStore
from .connection import close_connection_pool, get_connection, get_connection_pool
from .fingerprints import FingerprintStore
from .init import init_database, validate_connection
from .sources import SourceStore
from .watchlist import MentionStore, OrgStore

__all__ = [
    "ArticleStore",
    "BriefStore",
    "FingerprintStore",
    "MentionStore",
    "OrgStore",
    "SourceStore",
    "close_connection_pool",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]
