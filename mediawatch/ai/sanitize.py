"""Validation of LLM output: refusal detection, tag and entity parsing."""

import re
from typing import List

TAXONOMY = (
    "politics",
    "economy",
    "health",
    "education",
    "infrastructure",
    "environment",
    "crime",
    "grants",
    "federal",
    "legislation",
    "government",
    "technology",
    "culture",
    "sports",
)

# Refusals and meta-commentary. Matched as lowercase substrings.
GARBAGE_PATTERNS = (
    "no hay información",
    "no tengo",
    "no puedo",
    "no hay suficiente",
    "i cannot",
    "i don't have",
    "there is no information",
    "none of the provided",
    "i can suggest",
    "puedo sugerir",
    "sin embargo",
    "however",
    "por favor proporciona",
    "please provide",
    "no me permite",
    "clasificarlo en",
    "no information about",
    "que son:",
    "they might fit",
    "if i had to",
    "based on the context",
    "basada en",
    "posibles etiquetas",
    "si deseas más",
)

_ORDINAL_CHARS = "0123456789.-) "
_QUOTES = "\"'"
_SPLIT_RE = re.compile(r"[,\n]")


def is_garbage(text: str) -> bool:
    """True if ``text`` contains a refusal or meta phrase."""
    lowered = (text or "").lower()
    return any(pattern in lowered for pattern in GARBAGE_PATTERNS)


def clean_ai_response(text: str) -> str:
    """Trimmed, unquoted response, or '' if it is a refusal."""
    text = (text or "").strip()
    if not text or is_garbage(text):
        return ""
    return text.strip(_QUOTES).strip()


def _tokens(raw: str) -> List[str]:
    tokens = []
    for part in _SPLIT_RE.split(raw or ""):
        token = part.strip().strip(_QUOTES).lower()
        token = token.lstrip(_ORDINAL_CHARS).strip().strip(_QUOTES)
        if token:
            tokens.append(token)
    return tokens


def _dedupe(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def parse_tags(raw: str) -> List[str]:
    """
    Reduce a classifier answer to taxonomy tags.

    Exact matches win. If none match, each token is salvaged by taking the
    first taxonomy tag it contains, so "public health policy" yields
    "health".
    """
    tokens = _tokens(raw)
    tags = [token for token in tokens if token in TAXONOMY]

    if not tags:
        for token in tokens:
            for tag in TAXONOMY:
                if tag in token:
                    tags.append(tag)
                    break

    return _dedupe(tags)


def parse_entities(raw: str) -> List[str]:
    """Comma-separated entities; the literal "none" yields an empty list."""
    cleaned = clean_ai_response(raw)
    if not cleaned or cleaned.lower() == "none":
        return []
    entities = []
    for part in cleaned.split(","):
        entity = part.strip().strip(_QUOTES).strip()
        if entity and entity.lower() != "none":
            entities.append(entity)
    return _dedupe(entities)
