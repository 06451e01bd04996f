from __future__ import annotations

import json

import httpx
import pytest

from crossview.core.config import Settings
from crossview.llm.client import (
    AnthropicClient,
    BaseLLMClient,
    LLMAuthenticationError,
    LLMResponseError,
    LLMTimeoutError,
    MistralClient,
    build_llm_client,
    extract_json_object,
)
from crossview.llm.schemas import StoryAnalysisPayload

ANALYSIS = {
    "sources": [{"title": "Budget passes", "source": "CNN", "link": "https://cnn.example.com/1"}],
    "uniqueClaims": [{"claim": "The vote was close.", "source": "CNN"}],
    "sourceBias": [{"source": "CNN", "bias": "Center-Left", "biasQuotes": ["A historic win."]}],
}


def _settings(**overrides) -> Settings:
    values = {
        "anthropic_api_key": "anthropic-key",
        "mistral_api_key": "mistral-key",
        "llm_max_attempts": 2,
    }
    values.update(overrides)
    return Settings(**values)


def _anthropic_response(text: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "content": [{"type": "text", "text": text}],
            "usage": {"input_tokens": 100, "output_tokens": 20},
        },
    )


@pytest.mark.asyncio
async def test_anthropic_client_sends_messages_request() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/messages")
        assert request.headers["x-api-key"] == "anthropic-key"
        assert request.headers["anthropic-version"] == "2023-06-01"
        body = json.loads(request.content.decode())
        assert body["messages"] == [{"role": "user", "content": "Summarize this."}]
        assert body["system"]
        return _anthropic_response("A short summary.")

    client = AnthropicClient(settings=_settings(), transport=httpx.MockTransport(handler))
    result = await client.generate_text("Summarize this.")

    assert result.provider == "anthropic"
    assert result.content == "A short summary."
    assert result.usage == {"input_tokens": 100, "output_tokens": 20}


@pytest.mark.asyncio
async def test_mistral_client_requests_json_mode_and_parses_payload() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer mistral-key"
        body = json.loads(request.content.decode())
        assert body["model"] == "mistral-small-latest"
        assert body["response_format"] == {"type": "json_object"}
        return httpx.Response(
            200,
            json={"choices": [{"message": {"content": json.dumps(ANALYSIS)}}]},
        )

    client = MistralClient(settings=_settings(), transport=httpx.MockTransport(handler))
    result = await client.generate_json("Analyze", StoryAnalysisPayload)

    assert result.valid
    assert result.payload.unique_claims[0].claim == "The vote was close."
    assert result.payload.source_bias[0].bias == "left"
    assert result.payload.source_bias[0].bias_quotes == ["A historic win."]


@pytest.mark.asyncio
async def test_fenced_json_with_prose_is_accepted() -> None:
    text = "Here is the analysis:\n```json\n" + json.dumps(ANALYSIS) + "\n```"

    async def handler(request: httpx.Request) -> httpx.Response:
        return _anthropic_response(text)

    client = AnthropicClient(settings=_settings(), transport=httpx.MockTransport(handler))
    result = await client.generate_json("Analyze", StoryAnalysisPayload)

    assert result.payload.sources[0].source == "CNN"


@pytest.mark.asyncio
async def test_server_errors_are_retried() -> None:
    calls = {"count": 0}

    async def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            return httpx.Response(503, json={"error": "overloaded"})
        return _anthropic_response("Recovered.")

    client = AnthropicClient(settings=_settings(), transport=httpx.MockTransport(handler))
    result = await client.generate_text("Hello")

    assert calls["count"] == 2
    assert result.content == "Recovered."


@pytest.mark.asyncio
async def test_client_errors_are_not_retried() -> None:
    calls = {"count": 0}

    async def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(400, json={"error": "bad request"})

    client = AnthropicClient(settings=_settings(), transport=httpx.MockTransport(handler))
    with pytest.raises(LLMResponseError):
        await client.generate_text("Hello")
    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_rejected_key_raises_authentication_error() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "invalid key"})

    client = MistralClient(settings=_settings(), transport=httpx.MockTransport(handler))
    with pytest.raises(LLMAuthenticationError):
        await client.generate_text("Hello")


@pytest.mark.asyncio
async def test_missing_key_fails_before_any_request() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
        raise AssertionError("no request expected")

    client = AnthropicClient(
        settings=_settings(anthropic_api_key=None),
        transport=httpx.MockTransport(handler),
    )
    with pytest.raises(LLMAuthenticationError):
        await client.generate_text("Hello")


@pytest.mark.asyncio
async def test_timeouts_surface_after_retries() -> None:
    calls = {"count": 0}

    async def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        raise httpx.ReadTimeout("timed out", request=request)

    client = AnthropicClient(settings=_settings(), transport=httpx.MockTransport(handler))
    with pytest.raises(LLMTimeoutError):
        await client.generate_text("Hello")
    assert calls["count"] == 2


@pytest.mark.asyncio
async def test_invalid_json_raises_without_fallback() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return _anthropic_response("I cannot produce JSON today.")

    client = AnthropicClient(settings=_settings(), transport=httpx.MockTransport(handler))
    with pytest.raises(LLMResponseError):
        await client.generate_json("Analyze", StoryAnalysisPayload)


@pytest.mark.asyncio
async def test_invalid_json_falls_back_to_empty_payload() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return _anthropic_response("{not valid json")

    client = AnthropicClient(settings=_settings(), transport=httpx.MockTransport(handler))
    result = await client.generate_json("Analyze", StoryAnalysisPayload, fallback_on_invalid=True)

    assert result.valid is False
    assert result.payload.sources == []
    assert result.payload.unique_claims == []
    assert result.payload.source_bias == []
    assert result.raw_content == "{not valid json"


def test_extract_json_object_strips_fences_and_prose() -> None:
    assert extract_json_object('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert extract_json_object('Sure! {"a": {"b": 2}} Hope this helps.') == '{"a": {"b": 2}}'
    with pytest.raises(LLMResponseError):
        extract_json_object("no braces here")


def test_build_llm_client_selects_provider() -> None:
    assert isinstance(build_llm_client(_settings(llm_provider="mistral")), MistralClient)
    assert isinstance(build_llm_client(_settings(llm_provider="Anthropic")), AnthropicClient)
    assert isinstance(build_llm_client(_settings(llm_provider="other")), AnthropicClient)


def test_base_client_requires_provider_hooks():
    with pytest.raises(TypeError):
        BaseLLMClient(settings=_settings())
