"""Sentiment classification of new mentions and PR drafts for negative ones."""

import logging
from typing import Optional

import psycopg

from ..ai import LLMProvider
from ..ai.prompts import DRAFT_SYSTEM, SENTIMENT_SYSTEM
from ..config.models import RegionConfig, WatchlistConfig
from ..db import MentionStore
from ..errors import MediaWatchError, log_level
from ..models import Mention, Sentiment
from ..pipeline.deadline import Deadline

logger = logging.getLogger(__name__)


def parse_sentiment(response: str) -> Sentiment:
    """First label found, checking positive, negative, then neutral; neutral otherwise."""
    lowered = (response or "").strip().lower()
    for label in (Sentiment.POSITIVE, Sentiment.NEGATIVE, Sentiment.NEUTRAL):
        if label.value in lowered:
            return label
    return Sentiment.NEUTRAL


class SentimentDrafter:
    """Classifies unknown mentions; negative ones get a suggested response."""

    def __init__(
        self,
        llm: LLMProvider,
        mentions: MentionStore,
        settings: WatchlistConfig,
        region: RegionConfig,
    ) -> None:
        self.llm = llm
        self.mentions = mentions
        self.settings = settings
        self.region = region

    async def classify(self, mention: Mention) -> Sentiment:
        prompt = f"Title: {mention.title}\nSnippet: {mention.snippet}"
        try:
            response = await self.llm.generate(SENTIMENT_SYSTEM, prompt)
        except MediaWatchError as e:
            logger.log(log_level(e), "Sentiment call failed for %s: %s", mention.id, e)
            return Sentiment.NEUTRAL
        return parse_sentiment(response)

    async def draft(self, mention: Mention) -> str:
        """PR response in the region's language, or '' when generation failed."""
        system = DRAFT_SYSTEM.format(region=self.region.name, language=self.region.language)
        prompt = (
            f"Mencion negativa:\nTitulo: {mention.title}\nDetalle: {mention.snippet}\n\n"
            "Redacta un comunicado de respuesta de PR."
        )
        try:
            draft = await self.llm.generate(system, prompt, model=self.llm.quality_model)
        except MediaWatchError as e:
            logger.error("Draft generation failed for %s: %s", mention.id, e)
            return ""
        return draft.strip()[: self.settings.draft_max_chars]

    async def run(self, deadline: Optional[Deadline] = None) -> int:
        """
        Classify one batch of unknown mentions.

        Stops between mentions once ``deadline`` has expired; a call in
        flight is allowed to finish. Returns the number classified.
        """
        pending = await self.mentions.list_by_sentiment(Sentiment.UNKNOWN, self.settings.sentiment_batch)
        if not pending:
            return 0

        logger.info("Classifying %d mentions", len(pending))
        classified = drafted = 0
        for mention in pending:
            if deadline is not None and deadline.expired:
                logger.warning("Sentiment pass stopped by deadline after %d mentions", classified)
                break

            sentiment = await self.classify(mention)
            try:
                await self.mentions.update_sentiment(mention.id, sentiment)
            except psycopg.Error as e:
                logger.error("Failed to save sentiment for %s: %s", mention.id, e)
                continue
            classified += 1

            if sentiment == Sentiment.NEGATIVE:
                draft = await self.draft(mention)
                if not draft:
                    continue
                try:
                    await self.mentions.update_ai_draft(mention.id, draft)
                except psycopg.Error as e:
                    logger.error("Failed to save draft for %s: %s", mention.id, e)
                    continue
                drafted += 1

        logger.info("Sentiment pass: %d classified, %d drafted", classified, drafted)
        return classified
