"""Unit tests for the OpenRouterClient."""

import json

import httpx
import pytest

from devsketch.infrastructure.openrouter.openrouter_client import OpenRouterClient
from devsketch.domain.entities import ChatMessage
from devsketch.domain.exceptions import ChatProviderError


# ── Helpers ──


def _mock_openrouter_response(
    content: str = "Hello!",
    model: str = "openai/gpt-4o-mini",
    prompt_tokens: int = 10,
    completion_tokens: int = 5,
    total_tokens: int = 15,
    cost: float | None = 0.00014,
) -> dict:
    """Build a mock OpenRouter JSON response."""
    return {
        "id": "chatcmpl-test123",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "model": model,
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": total_tokens,
            **({"cost": cost} if cost is not None else {}),
        },
    }


def _client(handler) -> OpenRouterClient:
    return OpenRouterClient(
        api_key="test-key",
        app_name="DevSketch",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


# ── Tests ──


@pytest.mark.asyncio
async def test_complete_parses_response():
    """Non-streaming call correctly parses OpenRouter JSON response."""
    client = _client(lambda request: httpx.Response(200, json=_mock_openrouter_response("export default X;")))

    result = await client.complete(
        messages=[ChatMessage(role="user", content="Convert this sketch")],
        model="openai/gpt-4o-mini",
    )

    assert result.content == "export default X;"
    assert result.model == "openai/gpt-4o-mini"
    assert result.usage.total_tokens == 15
    assert result.usage.cost == 0.00014
    assert result.provider == "openrouter"


@pytest.mark.asyncio
async def test_complete_sends_generation_parameters():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["payload"] = json.loads(request.content)
        seen["headers"] = request.headers
        return httpx.Response(200, json=_mock_openrouter_response())

    await _client(handler).complete(
        messages=[
            ChatMessage(role="system", content="You convert sketches"),
            ChatMessage(role="user", content="Sketch JSON: []"),
        ],
        model="openai/gpt-3.5-turbo",
        temperature=0.2,
        max_tokens=4000,
        timeout=15.0,
    )

    assert seen["payload"]["model"] == "openai/gpt-3.5-turbo"
    assert seen["payload"]["temperature"] == 0.2
    assert seen["payload"]["max_tokens"] == 4000
    assert [m["role"] for m in seen["payload"]["messages"]] == ["system", "user"]
    assert seen["headers"]["authorization"] == "Bearer test-key"
    assert seen["headers"]["x-title"] == "DevSketch"


@pytest.mark.asyncio
async def test_complete_error_handling():
    """Non-streaming call raises ChatProviderError on 4xx/5xx."""
    client = _client(
        lambda request: httpx.Response(429, json={"error": {"code": 429, "message": "Rate limit exceeded"}})
    )

    with pytest.raises(ChatProviderError) as exc_info:
        await client.complete(
            messages=[ChatMessage(role="user", content="Hi")],
            model="openai/gpt-4o-mini",
        )

    assert exc_info.value.status_code == 429
    assert "Rate limit" in exc_info.value.message


@pytest.mark.asyncio
async def test_complete_timeout_is_reported_as_504():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ChatProviderError) as exc_info:
        await _client(handler).complete(
            messages=[ChatMessage(role="user", content="Hi")],
            model="openai/gpt-4o-mini",
            timeout=0.1,
        )

    assert exc_info.value.status_code == 504


@pytest.mark.asyncio
async def test_complete_without_choices_is_an_error():
    client = _client(lambda request: httpx.Response(200, json={"model": "m", "choices": []}))

    with pytest.raises(ChatProviderError):
        await client.complete(messages=[ChatMessage(role="user", content="Hi")], model="m")


@pytest.mark.asyncio
async def test_provider_name():
    """Provider name is correctly reported."""
    client = OpenRouterClient(api_key="test-key")
    assert client.provider_name == "openrouter"
