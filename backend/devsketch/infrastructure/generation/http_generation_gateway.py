"""HTTP adapter for the generation endpoint — implements the GenerationGateway port.

Single-response mode posts JSON and expects one JSON object back; streaming
mode asks for ``text/event-stream`` and yields the newline-delimited JSON
messages as they arrive.
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from devsketch.application.interfaces import GenerationGateway
from devsketch.domain.exceptions import (
    GenerationError,
    GenerationTransportError,
    RateLimitedError,
    UpstreamTimeoutError,
    generation_error_for,
)

logger = logging.getLogger(__name__)

_TIMEOUT_STATUSES = frozenset({408, 504})


class HttpGenerationGateway(GenerationGateway):
    """Infrastructure adapter — talks to the DevSketch generation endpoint over httpx."""

    def __init__(
        self,
        endpoint_url: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        self._endpoint_url = endpoint_url
        self._http_client = http_client
        self._timeout = timeout

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def request_single(self, payload: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()
        should_close = self._http_client is None

        try:
            try:
                response = await client.post(
                    self._endpoint_url,
                    headers={"Content-Type": "application/json"},
                    json=payload,
                )
            except httpx.TimeoutException as e:
                raise UpstreamTimeoutError() from e
            except httpx.HTTPError as e:
                raise GenerationTransportError(f"Generation request failed: {e}") from e

            if response.status_code != 200:
                raise self._error_from_body(response.status_code, response.content)

            try:
                data = response.json()
            except json.JSONDecodeError as e:
                raise GenerationTransportError("Generation response is not valid JSON") from e
            if not isinstance(data, dict):
                raise GenerationTransportError("Generation response is not a JSON object")
            return data

        finally:
            if should_close:
                await client.aclose()

    async def request_stream(self, payload: dict[str, Any]) -> AsyncIterator[str]:
        client = await self._get_client()
        should_close = self._http_client is None

        try:
            async with client.stream(
                "POST",
                self._endpoint_url,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "text/event-stream",
                },
                json=payload,
            ) as response:
                if response.status_code != 200:
                    body = await response.aread()
                    raise self._error_from_body(response.status_code, body)

                async for line in response.aiter_lines():
                    line = line.strip()
                    if line:
                        yield line

        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError() from e
        except httpx.HTTPError as e:
            raise GenerationTransportError(f"Generation stream failed: {e}") from e
        finally:
            if should_close:
                await client.aclose()

    @staticmethod
    def _error_from_body(status_code: int, body: bytes) -> GenerationError:
        """Build a typed error from a non-200 response body."""
        message = ""
        kind = None
        token = None
        try:
            data = json.loads(body)
            if isinstance(data, dict):
                message = str(data.get("error") or data.get("detail") or "")
                kind = data.get("errorKind")
                token = data.get("designToken")
        except (json.JSONDecodeError, UnicodeDecodeError):
            message = body.decode(errors="replace")[:200]

        if status_code == 429:
            return RateLimitedError(message or None, design_token=token)
        if status_code in _TIMEOUT_STATUSES:
            return UpstreamTimeoutError(message or None, design_token=token)
        if kind:
            return generation_error_for(kind, message, design_token=token)

        logger.warning("Generation endpoint answered %d: %s", status_code, message)
        return GenerationTransportError(
            f"API responded with status: {status_code}. {message}".strip(),
            design_token=token,
        )
