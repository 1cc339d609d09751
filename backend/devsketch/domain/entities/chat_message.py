"""Prompt messages and model answers exchanged with a chat provider."""

from dataclasses import dataclass, field


@dataclass
class ChatMessage:
    role: str  # "system" | "user" | "assistant"
    content: str = ""

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost: float | None = None  # USD, when the provider reports it


@dataclass
class ChatCompletionResult:
    """One model answer; ``content`` is the raw text before code cleanup."""

    model: str
    content: str
    finish_reason: str  # "stop" | "length" | "error"
    usage: TokenUsage = field(default_factory=TokenUsage)
    provider: str = ""

    @property
    def truncated(self) -> bool:
        """True when the model stopped at its token limit."""
        return self.finish_reason == "length"
