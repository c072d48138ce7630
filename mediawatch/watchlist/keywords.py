"""Keyword suggestions for a watched organization."""

import logging
import re
from typing import Iterable, List, Optional

from ..ai import LLMProvider
from ..ai.prompts import KEYWORDS_SYSTEM
from ..config.models import RegionConfig
from ..errors import KeywordContextTooShort, ScrapeFailed
from ..ingestion import PageScraper, WebResult, WebSearch

logger = logging.getLogger(__name__)

MIN_PAGE_BYTES = 200
PAGE_CONTEXT_CHARS = 3000
MIN_CONTEXT_CHARS = 50
SEARCH_RESULTS = 5
MAX_KEYWORDS = 10
_LIST_MARKER_RE = re.compile(r"^[\d.\-\s]+")


def parse_keywords(raw: str, org_name: str, generic: Iterable[str] = ()) -> List[str]:
    """
    Clean a comma-separated model answer into keywords.

    The org name always comes first. Entries outside 2-50 characters,
    generic terms and case-insensitive duplicates are dropped; at most ten
    are kept.
    """
    generic = {term.lower() for term in generic}
    name = org_name.strip()
    keywords = [name]
    seen = {name.lower()}

    for part in (raw or "").replace("\n", ",").split(","):
        keyword = _LIST_MARKER_RE.sub("", part.strip()).strip().strip("\"'").strip()
        if not 2 <= len(keyword) <= 50:
            continue
        lowered = keyword.lower()
        if lowered in generic or lowered in seen:
            continue
        seen.add(lowered)
        keywords.append(keyword)

    return keywords[:MAX_KEYWORDS]


def merge_keywords(suggested: Iterable[str], existing: Iterable[str]) -> List[str]:
    """Suggested keywords first, then the existing ones, without case-insensitive repeats."""
    merged = []
    seen = set()
    for keyword in [*suggested, *existing]:
        keyword = keyword.strip()
        if keyword and keyword.lower() not in seen:
            seen.add(keyword.lower())
            merged.append(keyword)
    return merged


def build_context(org_name: str, page_text: str, results: List[WebResult]) -> str:
    context = f"Organizacion: {org_name}\n\n"
    if page_text:
        context += page_text[:PAGE_CONTEXT_CHARS] + "\n\n"
    if results:
        context += "Resultados de busqueda:\n"
        for i, result in enumerate(results, start=1):
            context += f"{i}. {result.title} - {result.snippet}\n"
    return context


class KeywordEnricher:
    """Gathers context about an organization and asks the model for keywords."""

    def __init__(
        self,
        llm: LLMProvider,
        scraper: PageScraper,
        search: WebSearch,
        region: RegionConfig,
    ) -> None:
        self.llm = llm
        self.scraper = scraper
        self.search = search
        self.region = region

    async def _page_text(self, url: str) -> str:
        try:
            text = await self.scraper.fetch_page_text(url)
        except ScrapeFailed as e:
            logger.warning("Could not fetch %s: %s", url, e)
            return ""
        return text if len(text.encode("utf-8")) > MIN_PAGE_BYTES else ""

    async def suggest(self, org_name: str, website: Optional[str] = None) -> List[str]:
        """
        Suggested keywords for ``org_name``, its name first.

        Raises:
            KeywordContextTooShort: nothing useful was found about the org
            LLMUnavailable, LLMRejected: the model call failed
        """
        page_text = await self._page_text(website) if website else ""
        results = await self.search.multi_search([f"{org_name} {self.region.name}"], SEARCH_RESULTS)

        if not page_text:
            for result in results:
                page_text = await self._page_text(result.url)
                if page_text:
                    logger.info("Using %s as context for %s", result.url, org_name)
                    break

        context = build_context(org_name, page_text, results)
        if len(context) < MIN_CONTEXT_CHARS:
            raise KeywordContextTooShort(f"not enough context found for {org_name!r}")

        system = KEYWORDS_SYSTEM.format(region=self.region.name)
        response = await self.llm.generate(system, context)
        keywords = parse_keywords(response, org_name, self.region.generic_keywords)
        logger.info("Keywords for %s: %s", org_name, ", ".join(keywords))
        return keywords
