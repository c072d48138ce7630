"""Feed discovery, page scraping and content canonicalization."""

from .canonical import canonicalize_url, clean_text, hash_content, hash_url
from .feeds import FeedDiscoverer
from .filters import is_noise_title
from .http import DomainRateLimiter
from .models import DiscoveredArticle, ScrapedArticle, WebResult
from .scraper import PageScraper
from .search import WebSearch

__all__ = [
    "DiscoveredArticle",
    "DomainRateLimiter",
    "FeedDiscoverer",
    "PageScraper",
    "ScrapedArticle",
    "WebResult",
    "WebSearch",
    "canonicalize_url",
    "clean_text",
    "hash_content",
    "hash_url",
    "is_noise_title",
]
