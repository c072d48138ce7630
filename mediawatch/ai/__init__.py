"""LLM providers and output validation."""

from typing import Any, Dict

import httpx

from .ollama import OllamaProvider
from .openai_provider import OpenAIProvider
from .provider import LLMProvider
from .sanitize import GARBAGE_PATTERNS, TAXONOMY, clean_ai_response, is_garbage, parse_tags


def create_llm_provider(llm_config: Dict[str, Any], client: httpx.AsyncClient) -> LLMProvider:
    """Build the provider named by ``llm_config["provider"]``."""
    common = {
        "instruct_model": llm_config["instruct_model"],
        "embed_model": llm_config["embed_model"],
        "quality_model": llm_config["quality_model"],
        "max_input_chars": llm_config["max_input_chars"],
        "generate_timeout": llm_config["generate_timeout"],
        "embed_timeout": llm_config["embed_timeout"],
    }
    if llm_config["provider"] == "openai":
        return OpenAIProvider(
            api_key=llm_config.get("api_key") or "unused",
            base_url=llm_config.get("base_url"),
            **common,
        )
    return OllamaProvider(client=client, base_url=llm_config["base_url"], **common)


__all__ = [
    "GARBAGE_PATTERNS",
    "LLMProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "TAXONOMY",
    "clean_ai_response",
    "create_llm_provider",
    "is_garbage",
    "parse_tags",
]
