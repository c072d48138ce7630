"""Exception hierarchy for the monitoring pipeline.

Every concrete error derives from one of the kind bases below so that the
pipeline loops can decide how to log and whether to continue without
inspecting the concrete type.
"""

import logging
from typing import Optional


class MediaWatchError(Exception):
    """Base class for all pipeline errors."""


class TransientExternalError(MediaWatchError):
    """Network timeout, 5xx or 429 from an upstream service."""


class PermanentExternalError(MediaWatchError):
    """4xx other than 429, malformed payloads, empty bodies."""


class OutputInvalidError(MediaWatchError):
    """The LLM answered but the answer is unusable."""


class ResourceExhaustedError(MediaWatchError):
    """Daily budget reached or a deadline elapsed."""


class LocalStorageError(MediaWatchError):
    """Database or object-storage failure."""


class ConfigInvalidError(MediaWatchError):
    """Configuration missing or inconsistent."""


def is_permanent_status(status: Optional[int]) -> bool:
    """True for a 4xx answer other than 429; retrying will not change it."""
    return status is not None and 400 <= status < 500 and status != 429


class FeedUnreachable(MediaWatchError):
    """
    A feed, sitemap or listing page could not be fetched.

    Raised as FeedUnavailable or FeedRejected so the kind follows the
    HTTP status; catch this class to handle both.
    """

    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        self.url = url
        self.status = status
        super().__init__(f"{url}: {reason}")

    @classmethod
    def from_status(cls, url: str, status: int) -> "FeedUnreachable":
        kind = FeedRejected if is_permanent_status(status) else FeedUnavailable
        return kind(url, f"HTTP {status}", status)


class FeedUnavailable(FeedUnreachable, TransientExternalError):
    """Timeout, connection failure, 5xx or 429 while fetching a feed."""


class FeedRejected(FeedUnreachable, PermanentExternalError):
    """The feed host answered 4xx (other than 429)."""


class FeedMalformed(PermanentExternalError):
    """Neither RSS nor Atom parsing produced any entries."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"{url}: no items parsed as RSS or Atom")


class ConfigMissing(ConfigInvalidError):
    """A required source field is empty."""

    def __init__(self, source: str, field: str) -> None:
        self.source = source
        self.field = field
        super().__init__(f"source {source!r} has no {field}")


class ScrapeFailed(MediaWatchError):
    """An article page could not be fetched."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        self.url = url
        self.status = status
        super().__init__(f"{url}: {reason}")

    @classmethod
    def from_status(cls, url: str, status: int) -> "ScrapeFailed":
        kind = ScrapeRejected if is_permanent_status(status) else ScrapeUnavailable
        return kind(url, f"HTTP {status}", status)


class ScrapeUnavailable(ScrapeFailed, TransientExternalError):
    """Timeout, connection failure, 5xx or 429 while fetching a page."""


class ScrapeRejected(ScrapeFailed, PermanentExternalError):
    """The page host answered 4xx (other than 429)."""


class LLMUnavailable(TransientExternalError):
    """The inference server could not be reached or timed out."""


class LLMRejected(PermanentExternalError):
    """The inference server answered with a non-2xx status."""

    def __init__(self, status: int, body_snippet: str) -> None:
        self.status = status
        self.body_snippet = body_snippet
        super().__init__(f"LLM server returned {status}: {body_snippet}")

    @property
    def retriable(self) -> bool:
        return self.status == 429 or self.status >= 500


class LLMEmpty(OutputInvalidError):
    """The model produced no text."""


class EvidenceNotConfigured(ConfigInvalidError):
    """Object storage has no endpoint configured."""


class EvidenceNotFound(LocalStorageError):
    """No complete evidence triple exists under any policy prefix."""

    def __init__(self, article_id: str) -> None:
        self.article_id = article_id
        super().__init__(f"no evidence stored for article {article_id}")


class StorageFailed(LocalStorageError):
    """An object-storage call failed."""


class KeywordContextTooShort(OutputInvalidError):
    """Not enough context gathered to suggest keywords for an organization."""


def log_level(error: BaseException) -> int:
    """Logging level a pipeline loop uses when it skips an item because of ``error``."""
    if isinstance(error, OutputInvalidError):
        return logging.DEBUG
    if isinstance(error, (LocalStorageError, ConfigInvalidError)):
        return logging.ERROR
    return logging.WARNING
