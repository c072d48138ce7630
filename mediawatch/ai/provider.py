"""LLM provider interface."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from ..errors import LLMEmpty, LLMUnavailable
from . import prompts
from .sanitize import clean_ai_response, parse_entities, parse_tags

logger = logging.getLogger(__name__)


class LLMProvider(ABC):
    """
    Base class for LLM providers.

    Subclasses implement the two transport primitives, ``_complete`` and
    ``_embed``. Deadlines, prompt selection, truncation and output
    validation live here so every backend behaves the same.
    """

    def __init__(
        self,
        instruct_model: str,
        embed_model: str,
        quality_model: Optional[str] = None,
        max_input_chars: int = 8000,
        generate_timeout: float = 60.0,
        embed_timeout: float = 30.0,
    ) -> None:
        self.instruct_model = instruct_model
        self.embed_model = embed_model
        self.quality_model = quality_model or instruct_model
        self.max_input_chars = max_input_chars
        self.generate_timeout = generate_timeout
        self.embed_timeout = embed_timeout

    @abstractmethod
    async def _complete(self, model: str, system: str, prompt: str) -> str:
        """
        Run one completion and return the raw text.

        Raises:
            LLMUnavailable: transport failure
            LLMRejected: non-2xx answer
        """

    @abstractmethod
    async def _embed(self, model: str, text: str) -> List[float]:
        """Return the embedding vector for ``text``."""

    def truncate(self, text: str) -> str:
        return (text or "")[: self.max_input_chars]

    async def generate(self, system: str, prompt: str, model: Optional[str] = None) -> str:
        """Free-form generation with the default or an override model."""
        model = model or self.instruct_model
        try:
            text = await asyncio.wait_for(
                self._complete(model, system, prompt), timeout=self.generate_timeout
            )
        except asyncio.TimeoutError:
            raise LLMUnavailable(f"{model}: no answer within {self.generate_timeout}s")

        text = (text or "").strip()
        if not text:
            raise LLMEmpty(f"{model} returned an empty response")
        return text

    async def summarize(self, text: str) -> str:
        """2-3 sentence summary, or '' when the model refused."""
        raw = await self.generate(prompts.SUMMARIZE_SYSTEM, self.truncate(text))
        summary = clean_ai_response(raw)
        if not summary:
            logger.debug("Discarded refusal summary: %.80s", raw)
        return summary

    async def classify(self, text: str) -> List[str]:
        """Taxonomy tags for ``text``."""
        raw = await self.generate(prompts.CLASSIFY_SYSTEM, self.truncate(text))
        return parse_tags(raw)

    async def extract_entities(self, text: str) -> List[str]:
        raw = await self.generate(prompts.ENTITIES_SYSTEM, self.truncate(text))
        return parse_entities(raw)

    async def embed(self, text: str) -> List[float]:
        """Embedding vector for ``text``; an empty vector raises LLMEmpty."""
        try:
            vector = await asyncio.wait_for(
                self._embed(self.embed_model, self.truncate(text)), timeout=self.embed_timeout
            )
        except asyncio.TimeoutError:
            raise LLMUnavailable(f"{self.embed_model}: no embedding within {self.embed_timeout}s")

        if not vector:
            raise LLMEmpty(f"{self.embed_model} returned an empty embedding")
        return vector

    async def aclose(self) -> None:
        """Release transport resources."""
