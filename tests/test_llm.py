"""Tests for the LLM providers."""

import asyncio
import json

import httpx
import pytest

from mediawatch.ai import OllamaProvider, create_llm_provider
from mediawatch.ai.ollama import decode_stream
from mediawatch.errors import LLMEmpty, LLMRejected, LLMUnavailable

from conftest import FakeLLM


async def lines(*items):
    for item in items:
        yield item


def ollama(handler, **kwargs) -> OllamaProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    kwargs.setdefault("instruct_model", "llama3")
    kwargs.setdefault("embed_model", "nomic-embed-text")
    return OllamaProvider(client=client, base_url="http://ollama:11434/", **kwargs)


def stream_body(*chunks) -> bytes:
    return "\n".join(json.dumps(chunk) for chunk in chunks).encode("utf-8")


class TestDecodeStream:
    """Tests for the JSON-lines stream decoder."""

    @pytest.mark.asyncio
    async def test_concatenates_until_done(self):
        text = await decode_stream(
            lines(
                '{"response": "Hel", "done": false}',
                "",
                '{"response": "lo", "done": true}',
                '{"response": " ignored", "done": false}',
            )
        )
        assert text == "Hello"

    @pytest.mark.asyncio
    async def test_keeps_partial_output_on_bad_line(self):
        text = await decode_stream(lines('{"response": "Partial", "done": false}', "{not json"))
        assert text == "Partial"

    @pytest.mark.asyncio
    async def test_bad_first_line_is_rejected(self):
        with pytest.raises(LLMRejected) as exc_info:
            await decode_stream(lines("<html>proxy error</html>"))
        assert exc_info.value.status == 200

    @pytest.mark.asyncio
    async def test_error_object_is_rejected(self):
        with pytest.raises(LLMRejected):
            await decode_stream(lines('{"error": "model not found"}'))


class TestOllamaProvider:
    """Tests for the Ollama transport."""

    @pytest.mark.asyncio
    async def test_generate_streams_response(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["payload"] = json.loads(request.content)
            body = stream_body(
                {"response": "  El gobierno", "done": False},
                {"response": " anunció fondos. ", "done": True},
            )
            return httpx.Response(200, content=body)

        provider = ollama(handler)
        text = await provider.generate("system prompt", "article text")

        assert text == "El gobierno anunció fondos."
        assert seen["path"] == "/api/generate"
        assert seen["payload"]["model"] == "llama3"
        assert seen["payload"]["system"] == "system prompt"
        assert seen["payload"]["stream"] is True

    @pytest.mark.asyncio
    async def test_model_override(self):
        seen = {}

        def handler(request):
            seen["model"] = json.loads(request.content)["model"]
            return httpx.Response(200, content=stream_body({"response": "ok", "done": True}))

        provider = ollama(handler, quality_model="llama3.1:8b")
        await provider.generate("s", "p", model=provider.quality_model)
        assert seen["model"] == "llama3.1:8b"

    @pytest.mark.asyncio
    async def test_server_error_is_rejected(self):
        provider = ollama(lambda request: httpx.Response(503, text="overloaded"))
        with pytest.raises(LLMRejected) as exc_info:
            await provider.generate("s", "p")
        assert exc_info.value.status == 503
        assert exc_info.value.retriable
        assert "overloaded" in exc_info.value.body_snippet

    @pytest.mark.asyncio
    async def test_client_error_is_not_retriable(self):
        provider = ollama(lambda request: httpx.Response(400, text="bad request"))
        with pytest.raises(LLMRejected) as exc_info:
            await provider.generate("s", "p")
        assert not exc_info.value.retriable

    @pytest.mark.asyncio
    async def test_connection_failure_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = ollama(handler)
        with pytest.raises(LLMUnavailable):
            await provider.generate("s", "p")

    @pytest.mark.asyncio
    async def test_empty_answer(self):
        provider = ollama(lambda request: httpx.Response(200, content=stream_body({"response": "  ", "done": True})))
        with pytest.raises(LLMEmpty):
            await provider.generate("s", "p")

    @pytest.mark.asyncio
    async def test_embed(self):
        def handler(request):
            assert request.url.path == "/api/embeddings"
            return httpx.Response(200, json={"embedding": [0.5, -0.25]})

        provider = ollama(handler)
        assert await provider.embed("text") == [0.5, -0.25]

    @pytest.mark.asyncio
    async def test_empty_embedding(self):
        provider = ollama(lambda request: httpx.Response(200, json={"embedding": []}))
        with pytest.raises(LLMEmpty):
            await provider.embed("text")


class TestProviderBehaviour:
    """Tests for the shared provider logic."""

    @pytest.mark.asyncio
    async def test_refusal_summary_is_empty(self):
        llm = FakeLLM({"summarize": "No tengo información suficiente para resumir"})
        assert await llm.summarize("text") == ""

    @pytest.mark.asyncio
    async def test_classify_returns_taxonomy_tags(self):
        llm = FakeLLM({"classify": "Health, vaccines, education"})
        assert await llm.classify("text") == ["health", "education"]

    @pytest.mark.asyncio
    async def test_classify_keeps_tags_after_meta_phrase(self):
        llm = FakeLLM({"classify": "Based on the context, politics, health"})
        assert await llm.classify("text") == ["politics", "health"]

    @pytest.mark.asyncio
    async def test_input_is_truncated(self):
        llm = FakeLLM({"summarize": "ok"}, max_input_chars=100)
        await llm.summarize("x" * 500)
        _, _, prompt = llm.calls_of("summarize")[0]
        assert len(prompt) == 100

    @pytest.mark.asyncio
    async def test_generate_deadline(self):
        class SlowLLM(FakeLLM):
            async def _complete(self, model, system, prompt):
                await asyncio.sleep(1)
                return "late"

        llm = SlowLLM(generate_timeout=0.05)
        with pytest.raises(LLMUnavailable):
            await llm.generate("s", "p")

    def test_factory_selects_provider(self):
        config = {
            "provider": "ollama",
            "base_url": "http://localhost:11434",
            "instruct_model": "llama3",
            "embed_model": "nomic-embed-text",
            "quality_model": "llama3.1:8b",
            "max_input_chars": 8000,
            "generate_timeout": 60.0,
            "embed_timeout": 30.0,
        }
        provider = create_llm_provider(config, httpx.AsyncClient())
        assert isinstance(provider, OllamaProvider)
        assert provider.quality_model == "llama3.1:8b"
        assert provider.base_url == "http://localhost:11434"
