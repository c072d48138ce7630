"""Daily thematic brief over recently ingested articles."""

import logging
from collections import Counter
from typing import List, Optional

import pendulum

from ..ai import LLMProvider
from ..ai.prompts import BRIEF_SYSTEM
from ..config.models import BriefConfig, RegionConfig
from ..db import ArticleStore, BriefStore
from ..errors import MediaWatchError
from ..models import Article, Brief

logger = logging.getLogger(__name__)

SNIPPET_CHARS = 400
FALLBACK_TITLES = 5


def build_article_block(articles: List[Article], max_chars: int = 12000) -> str:
    """Numbered ``[source] title: summary`` lines, stopping once past ``max_chars``."""
    lines = []
    size = 0
    for i, article in enumerate(articles, start=1):
        if size > max_chars:
            break
        line = f"{i}. [{article.source_name}] {article.title}"
        if article.summary:
            line += f": {article.summary}"
        elif article.clean_text:
            snippet = article.clean_text
            if len(snippet) > SNIPPET_CHARS:
                snippet = snippet[:SNIPPET_CHARS] + "..."
            line += f": {snippet}"
        lines.append(line + "\n")
        size += len(line) + 1
    return "".join(lines)


def fallback_summary(articles: List[Article]) -> str:
    summary = f"Daily brief: {len(articles)} articles collected. "
    if articles:
        titles = [article.title for article in articles[:FALLBACK_TITLES]]
        summary += "Top stories: " + "; ".join(titles)
    return summary


def top_tags(articles: List[Article], limit: int = 10) -> List[str]:
    """Most frequent tags; ties keep first-seen order."""
    counts = Counter(tag for article in articles for tag in article.tags)
    return [tag for tag, _ in counts.most_common(limit)]


class DailyBriefGenerator:
    """Summarizes the last day of articles into one brief per UTC date."""

    def __init__(
        self,
        llm: LLMProvider,
        articles: ArticleStore,
        briefs: BriefStore,
        settings: BriefConfig,
        region: RegionConfig,
    ) -> None:
        self.llm = llm
        self.articles = articles
        self.briefs = briefs
        self.settings = settings
        self.region = region

    async def generate(self) -> Optional[Brief]:
        """Build and upsert today's brief; None when there is nothing to summarize."""
        recent = await self.articles.list_recent(self.settings.hours, limit=self.settings.max_articles)
        if not recent:
            logger.info("No articles in the last %d hours, skipping brief", self.settings.hours)
            return None

        recent = recent[: self.settings.max_articles]
        block = build_article_block(recent, self.settings.max_block_chars)
        block = block[: self.settings.max_prompt_chars]

        system = BRIEF_SYSTEM.format(region=self.region.name, language=self.region.language)
        try:
            summary = await self.llm.generate(system, block, model=self.llm.quality_model)
        except MediaWatchError as e:
            logger.error("Brief generation failed, using fallback: %s", e)
            summary = fallback_summary(recent)

        brief = Brief(
            date=pendulum.now("UTC").date(),
            summary=summary,
            top_tags=top_tags(recent, self.settings.top_tags),
            article_count=len(recent),
        )
        brief = await self.briefs.create(brief)
        logger.info("Brief for %s written from %d articles", brief.date, brief.article_count)
        return brief
