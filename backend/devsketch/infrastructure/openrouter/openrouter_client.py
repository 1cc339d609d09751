"""OpenRouter chat-completions adapter used by the sketch-to-code service.

Every failure, whether an HTTP error status, a timeout, or an unreadable
body, surfaces as ``ChatProviderError`` with an HTTP-like status code so the
service can decide between fallback, rate limiting and timeout handling.
"""

import json
import logging
from typing import Any

import httpx

from devsketch.application.interfaces.chat_provider import ChatProvider
from devsketch.domain.entities import ChatCompletionResult, ChatMessage, TokenUsage
from devsketch.domain.exceptions import ChatProviderError

logger = logging.getLogger(__name__)

# Used when the request never got an HTTP answer.
_TIMEOUT_STATUS = 504
_TRANSPORT_STATUS = 502
_DEFAULT_TIMEOUT = 120.0


class OpenRouterClient(ChatProvider):
    """ChatProvider backed by the OpenRouter ``/chat/completions`` API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        app_name: str = "DevSketch",
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._url = base_url.rstrip("/") + "/chat/completions"
        self._app_name = app_name
        self._http_client = http_client

    @property
    def provider_name(self) -> str:
        return "openrouter"

    def _error(self, status_code: int, message: str) -> ChatProviderError:
        return ChatProviderError(
            provider=self.provider_name, status_code=status_code, message=message
        )

    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
    ) -> ChatCompletionResult:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_name,
        }

        client = self._http_client or httpx.AsyncClient(timeout=_DEFAULT_TIMEOUT)
        try:
            response = await client.post(
                self._url,
                headers=headers,
                json=payload,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.TimeoutException as e:
            raise self._error(_TIMEOUT_STATUS, f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise self._error(_TRANSPORT_STATUS, f"Transport error: {e}") from e
        finally:
            if self._http_client is None:
                await client.aclose()

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            if response.status_code != 200:
                raise self._error(response.status_code, response.text) from e
            raise self._error(_TRANSPORT_STATUS, "Response body is not valid JSON") from e

        if response.status_code != 200:
            raise self._error(response.status_code, _error_message(data, response.text))
        return self._to_result(data)

    def _to_result(self, data: Any) -> ChatCompletionResult:
        if not isinstance(data, dict):
            raise self._error(_TRANSPORT_STATUS, "Response body is not a JSON object")

        # OpenRouter reports some upstream failures inside a 200 body
        if "error" in data:
            error = data["error"] if isinstance(data["error"], dict) else {}
            raise self._error(error.get("code", 500), _error_message(data, "Unknown error"))

        choices = data.get("choices") or []
        if not choices:
            raise self._error(500, "No choices in response")

        choice = choices[0]
        usage = data.get("usage") or {}
        logger.debug(
            "OpenRouter %s finished with %s (%s tokens)",
            data.get("model"),
            choice.get("finish_reason"),
            usage.get("total_tokens"),
        )
        return ChatCompletionResult(
            model=data.get("model", ""),
            content=(choice.get("message") or {}).get("content") or "",
            finish_reason=choice.get("finish_reason") or "stop",
            usage=TokenUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
                cost=usage.get("cost"),
            ),
            provider=self.provider_name,
        )


def _error_message(data: Any, default: str) -> str:
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return str(data["error"].get("message") or default)
    return default
