"""Provider for OpenAI-compatible chat and embedding endpoints."""

from typing import List, Optional

import openai
from openai import AsyncOpenAI

from ..errors import LLMRejected, LLMUnavailable
from .provider import LLMProvider


class OpenAIProvider(LLMProvider):
    """OpenAI implementation of LLM provider."""

    def __init__(self, api_key: str, base_url: Optional[str] = None, **kwargs) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: API key for the endpoint
            base_url: Custom base URL (OpenAI-compatible servers, including Ollama's /v1)
        """
        super().__init__(**kwargs)
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def _complete(self, model: str, system: str, prompt: str) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=0.3,
            )
        except openai.APIStatusError as e:
            raise LLMRejected(e.status_code, str(e.message)[:1024])
        except openai.APIError as e:
            raise LLMUnavailable(str(e))

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def _embed(self, model: str, text: str) -> List[float]:
        try:
            response = await self.client.embeddings.create(model=model, input=text)
        except openai.APIStatusError as e:
            raise LLMRejected(e.status_code, str(e.message)[:1024])
        except openai.APIError as e:
            raise LLMUnavailable(str(e))

        if not response.data:
            return []
        return list(response.data[0].embedding)

    async def aclose(self) -> None:
        await self.client.close()
