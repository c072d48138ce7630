"""Spam filter applied to watchlist search results before they are stored."""

import re
from typing import Iterable, Sequence
from urllib.parse import urlsplit

from ..config.models import RegionConfig

SUBREDDIT_POST_RE = re.compile(r"/r/[^/]+/comments/")
VIDEO_PATH_PREFIXES = ("/watch", "/shorts/", "/live/")


def is_subreddit_homepage(url: str) -> bool:
    """Reddit URLs that are not a specific post."""
    lowered = url.lower()
    if "reddit.com" not in lowered:
        return False
    return not SUBREDDIT_POST_RE.search(lowered)


def is_video_homepage(url: str) -> bool:
    """Video-platform channel or front pages, as opposed to a single video."""
    parts = urlsplit(url.lower())
    if not parts.netloc.endswith("youtube.com"):
        return False
    return not parts.path.startswith(VIDEO_PATH_PREFIXES)


def is_generic_homepage(url: str) -> bool:
    """A site front page: empty or "/" path, whatever the query string."""
    parts = urlsplit(url.strip().lower())
    if not parts.netloc:
        parts = urlsplit("//" + url.strip().lower())
    return not parts.path.strip("/")


def _contains_any(text: str, patterns: Iterable[str]) -> bool:
    return any(pattern in text for pattern in patterns)


class SpamFilter:
    """
    Decides whether a search result is noise.

    The check is pure: the same inputs always give the same answer. Rules
    are applied in order:

    1. subreddit or video-platform homepage (not a post or video)
    2. generic site homepage
    3. NSFW phrase anywhere in title, snippet or URL
    4. mentions another country and never the region
    5. clickbait or aggregator phrase
    6. subreddit post that mentions none of the org keywords
    """

    def __init__(self, region: RegionConfig) -> None:
        self.region_terms = tuple(term.lower() for term in region.terms)
        self.foreign_terms = tuple(term.lower() for term in region.foreign_terms)
        self.nsfw_patterns = tuple(term.lower() for term in region.nsfw_patterns)
        self.clickbait_patterns = tuple(term.lower() for term in region.clickbait_patterns)

    def mentions_region(self, lowered: str) -> bool:
        return _contains_any(lowered, self.region_terms)

    def is_spam(
        self,
        url: str,
        title: str = "",
        snippet: str = "",
        keywords: Sequence[str] = (),
    ) -> bool:
        lowered = f"{title} {snippet} {url}".lower()

        if is_subreddit_homepage(url) or is_video_homepage(url):
            return True
        if is_generic_homepage(url):
            return True
        if _contains_any(lowered, self.nsfw_patterns):
            return True
        if not self.mentions_region(lowered) and _contains_any(lowered, self.foreign_terms):
            return True
        if _contains_any(lowered, self.clickbait_patterns):
            return True

        if "reddit.com" in url.lower() and keywords:
            usable = [kw.lower() for kw in keywords if len(kw) > 1]
            if not _contains_any(lowered, usable):
                return True

        return False
