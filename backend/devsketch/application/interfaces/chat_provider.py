"""Port for the LLM that turns an annotated sketch into component code."""

from abc import ABC, abstractmethod

from devsketch.domain.entities import ChatCompletionResult, ChatMessage


class ChatProvider(ABC):
    """A chat-completions backend the sketch-to-code service can call."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
    ) -> ChatCompletionResult:
        """Run one non-streaming completion against ``model``.

        ``timeout`` bounds this single call; the service tries a second
        model when it expires.

        Raises:
            ChatProviderError: For any provider-side or transport failure,
                carrying an HTTP-like ``status_code``.
        """
        ...
