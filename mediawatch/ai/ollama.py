"""Ollama provider speaking the native streaming /api/generate protocol."""

import json
import logging
from typing import AsyncIterator, List

import httpx

from ..errors import LLMRejected, LLMUnavailable
from ..ingestion.http import read_capped
from .provider import LLMProvider

logger = logging.getLogger(__name__)

ERROR_BODY_LIMIT = 1024


async def decode_stream(lines: AsyncIterator[str]) -> str:
    """
    Concatenate the ``response`` fields of a JSON-lines stream.

    Stops at the first object with ``done: true``. A line that fails to
    decode ends the stream; whatever was accumulated so far is returned, and
    if nothing was, the failure is reported as LLMRejected.
    """
    parts: List[str] = []
    async for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            chunk = json.loads(line)
        except json.JSONDecodeError:
            if parts:
                logger.warning("Stream decode failed after %d chunks, keeping partial output", len(parts))
                break
            raise LLMRejected(200, line[:ERROR_BODY_LIMIT])

        if chunk.get("error"):
            if parts:
                logger.warning("Stream error after %d chunks: %s", len(parts), chunk["error"])
                break
            raise LLMRejected(200, str(chunk["error"])[:ERROR_BODY_LIMIT])

        parts.append(chunk.get("response", ""))
        if chunk.get("done"):
            break
    return "".join(parts)


class OllamaProvider(LLMProvider):
    """Client for a local Ollama server."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def _complete(self, model: str, system: str, prompt: str) -> str:
        payload = {"model": model, "prompt": prompt, "stream": True}
        if system:
            payload["system"] = system

        try:
            async with self.client.stream(
                "POST", f"{self.base_url}/api/generate", json=payload
            ) as response:
                if not response.is_success:
                    body = await read_capped(response, ERROR_BODY_LIMIT)
                    raise LLMRejected(response.status_code, body.decode("utf-8", errors="replace"))
                return await decode_stream(response.aiter_lines())
        except httpx.HTTPError as e:
            raise LLMUnavailable(f"{self.base_url}: {str(e) or type(e).__name__}")

    async def _embed(self, model: str, text: str) -> List[float]:
        try:
            response = await self.client.post(
                f"{self.base_url}/api/embeddings",
                json={"model": model, "prompt": text},
            )
        except httpx.HTTPError as e:
            raise LLMUnavailable(f"{self.base_url}: {str(e) or type(e).__name__}")

        if not response.is_success:
            raise LLMRejected(response.status_code, response.text[:ERROR_BODY_LIMIT])
        try:
            data = response.json()
        except ValueError:
            raise LLMRejected(response.status_code, response.text[:ERROR_BODY_LIMIT])
        return data.get("embedding") or []
