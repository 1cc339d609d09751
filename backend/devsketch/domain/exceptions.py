"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class ConstraintViolationError(Exception):
    """Raised when the design store rejects a write that breaks a constraint."""

    def __init__(self, entity_type: str, message: str):
        self.entity_type = entity_type
        self.message = message
        super().__init__(f"{entity_type}: {message}")


class RemoteUnavailableError(Exception):
    """Raised when the remote design store cannot be reached or refuses access.

    Distinct from "not found": callers fall back to local storage instead of
    treating an outage as a missing design.
    """

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Remote design store unavailable during {operation}: {reason}")


class LocalStorageFailure(Exception):
    """Raised inside the local persistence layer; never escapes the adapter."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Local storage failure for '{key}': {reason}")


class ChatProviderError(Exception):
    """Raised when a chat provider returns an error.

    Provider-agnostic — works for OpenRouter, Groq, OpenAI, etc.
    """

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")


# ── Code generation failures ─────────────────────────────────────────


class GenerationError(Exception):
    """Base class for failures surfaced by the code generation pipeline.

    ``kind`` is the stable wire name of the failure (sent as ``errorKind``
    and exposed on ``GenerationResult.error_kind``). ``design_token`` carries
    the correlation token when the failing response announced one.
    """

    kind = "transport_error"
    default_message = "Code generation failed."

    def __init__(self, message: str | None = None, design_token: str | None = None):
        self.message = message or self.default_message
        self.design_token = design_token
        super().__init__(self.message)


class EmptySketchError(GenerationError):
    kind = "empty_sketch"
    default_message = (
        "Empty sketch data. Please add elements to your drawing before generating code."
    )


class RateLimitedError(GenerationError):
    kind = "rate_limited"
    default_message = "Rate limit exceeded. Please try again in a minute."


class UpstreamTimeoutError(GenerationError):
    kind = "upstream_timeout"
    default_message = (
        "Generation timed out. Please try again with a simpler drawing or fewer elements."
    )


class UpstreamEmptyResponseError(GenerationError):
    kind = "upstream_empty_response"
    default_message = (
        "No code was generated. The sketch may not contain recognizable UI elements."
    )


class GenerationTransportError(GenerationError):
    kind = "transport_error"
    default_message = "Could not reach the code generation service."


class PartialStreamTruncatedError(GenerationError):
    kind = "partial_stream_truncated"
    default_message = "Stream ended before the generated code was complete."


GENERATION_ERRORS: dict[str, type[GenerationError]] = {
    cls.kind: cls
    for cls in (
        EmptySketchError,
        RateLimitedError,
        UpstreamTimeoutError,
        UpstreamEmptyResponseError,
        GenerationTransportError,
        PartialStreamTruncatedError,
    )
}


def generation_error_for(
    kind: str | None,
    message: str,
    design_token: str | None = None,
) -> GenerationError:
    """Rebuild a typed generation error from its wire form.

    Older servers send only a message, so the text is inspected when no
    known ``kind`` is given.
    """
    error_cls = GENERATION_ERRORS.get(kind or "")
    if error_cls is None:
        lowered = message.lower()
        if "rate limit" in lowered:
            error_cls = RateLimitedError
        elif "timed out" in lowered or "timeout" in lowered:
            error_cls = UpstreamTimeoutError
        elif "no code was generated" in lowered:
            error_cls = UpstreamEmptyResponseError
        else:
            error_cls = GenerationTransportError
    return error_cls(message, design_token=design_token)
