"""Lenient date parsing for feed and page dates."""

import calendar
import time
from datetime import datetime, timezone
from typing import Optional

# Tried in order; %d also accepts single-digit days.
DATE_FORMATS = [
    "%a, %d %b %Y %H:%M:%S %z",
    "%a, %d %b %Y %H:%M:%S %Z",
    "%a, %d %b %Y %H:%M %z",
    "%d %b %Y %H:%M:%S %z",
    "%d %b %Y %H:%M:%S %Z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%B %d, %Y",
    "%b %d, %Y",
]


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse ``value`` against DATE_FORMATS, returning an aware UTC datetime."""
    if not value:
        return None
    value = value.strip()
    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    return None


def from_struct_time(value: Optional[time.struct_time]) -> Optional[datetime]:
    """Convert a UTC struct_time (as produced by feedparser) to a datetime."""
    if not value:
        return None
    return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
