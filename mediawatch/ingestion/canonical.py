"""URL canonicalization, hashing, HTML cleaning and gzip framing."""

import gzip
import hashlib
import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "utm_id",
        "fbclid",
        "gclid",
        "gclsrc",
        "dclid",
        "msclkid",
        "twclid",
        "mc_cid",
        "mc_eid",
        "ref",
        "_ga",
        "_gl",
    }
)

_BLOCK_BREAK_RE = re.compile(r"</(?:p|div|li|h[1-6]|tr|blockquote)\s*>|<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")
_MULTI_NEWLINE_RE = re.compile(r"\n{3,}")

_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&apos;": "'",
    "&nbsp;": " ",
}
_ENTITY_RE = re.compile("|".join(re.escape(e) for e in _ENTITIES))


def _is_tracking(key: str) -> bool:
    key = key.lower()
    return key in TRACKING_PARAMS or key.startswith("utm_")


def canonicalize_url(raw: str) -> str:
    """
    Normalize a URL for deduplication.

    Lowercases scheme and host, drops the fragment and tracking parameters,
    sorts the remaining query by key and removes a trailing slash from
    non-root paths. Unparseable input is returned unchanged.
    """
    try:
        parts = urlsplit(raw.strip())
        port = parts.port
    except ValueError:
        return raw

    netloc = parts.netloc
    if parts.hostname:
        host = parts.hostname
        if ":" in host:
            host = f"[{host}]"
        userinfo = netloc.rpartition("@")[0]
        netloc = f"{userinfo}@{host}" if userinfo else host
        if port is not None:
            netloc = f"{netloc}:{port}"

    query_pairs = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not _is_tracking(key)
    ]
    query_pairs.sort(key=lambda pair: pair[0])

    path = parts.path
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"

    return urlunsplit((parts.scheme.lower(), netloc, path, urlencode(query_pairs), ""))


def hash_url(raw: str) -> str:
    """SHA-256 hex of the canonical form of ``raw``."""
    return hashlib.sha256(canonicalize_url(raw).encode("utf-8")).hexdigest()


def hash_content(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def clean_text(html: str) -> str:
    """Strip markup from ``html`` leaving one paragraph per line."""
    if not html:
        return ""

    text = _BLOCK_BREAK_RE.sub("\n", html)
    text = _TAG_RE.sub("", text)
    text = _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(0)], text)

    lines = []
    for line in text.split("\n"):
        line = _SPACE_RE.sub(" ", line).strip()
        if line:
            lines.append(line)

    return _MULTI_NEWLINE_RE.sub("\n\n", "\n".join(lines))


def compress_gzip(data: bytes) -> bytes:
    return gzip.compress(data, compresslevel=9)


def decompress_gzip(data: bytes) -> bytes:
    return gzip.decompress(data)
