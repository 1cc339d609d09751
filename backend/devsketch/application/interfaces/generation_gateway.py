"""Abstract interface (port) for the sketch-to-code generation endpoint."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any


class GenerationGateway(ABC):
    """Port for reaching the generation endpoint — implemented in infrastructure.

    Implementations translate transport problems into ``GenerationError``
    subclasses (``RateLimitedError``, ``UpstreamTimeoutError``,
    ``GenerationTransportError``).
    """

    @abstractmethod
    async def request_single(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Send one request and return the decoded JSON result object."""
        ...

    @abstractmethod
    def request_stream(self, payload: dict[str, Any]) -> AsyncIterator[str]:
        """Send one request and yield the non-empty NDJSON lines of the response."""
        ...
