"""Title filter for bureaucratic notices that are not news."""

from typing import Iterable


def is_noise_title(title: str, patterns: Iterable[str]) -> bool:
    """True if the lowercased title contains any of ``patterns``."""
    lowered = (title or "").lower()
    return any(pattern in lowered for pattern in patterns)
