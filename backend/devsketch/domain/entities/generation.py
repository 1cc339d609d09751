"""Domain entities for sketch-to-code generation and its streaming wire messages."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .design import Element


class GenerationMode(str, Enum):
    """How the orchestrator consumes the generation endpoint."""

    AUTO = "auto"
    SINGLE = "single"
    STREAM = "stream"


@dataclass
class GenerationRequest:
    """Outbound request body for the generation endpoint."""

    elements: list[Element]
    framework: str = "react"
    css: str = "tailwind"
    owner_id: str | None = None
    design_hint: str | None = None

    def to_payload(self, *, non_streaming: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "elements": self.elements,
            "framework": self.framework,
            "css": self.css,
        }
        if self.owner_id:
            payload["ownerId"] = self.owner_id
        if self.design_hint:
            payload["designHint"] = self.design_hint
        if non_streaming:
            payload["useNonStreaming"] = True
        return payload


@dataclass
class GenerationResult:
    """Outcome of one logical generation.

    Either ``code`` is non-empty and ``error`` is None, or ``code`` is empty
    and ``error`` (plus ``error_kind``) describes the failure.
    """

    code: str = ""
    design_token: str | None = None
    error: str | None = None
    error_kind: str | None = None
    mode: GenerationMode | None = None
    fallback_used: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None and bool(self.code)


@dataclass
class GenerationProgress:
    """Incremental progress reported while code fragments stream in."""

    partial_code: str
    chunk_index: int
    total_chunks: int
    is_complete: bool = False

    @property
    def percent(self) -> int:
        if self.total_chunks <= 0:
            return 0
        return round((self.chunk_index + 1) / self.total_chunks * 100)


# ── Streaming messages ───────────────────────────────────────────────
#
# One JSON object per line. Every message except a code fragment carries a
# "message" discriminator.


@dataclass
class StreamStart:
    info: str | None = None


@dataclass
class StreamToken:
    design_token: str


@dataclass
class StreamCodeFragment:
    code: str
    chunk_index: int
    total_chunks: int
    is_last: bool


@dataclass
class StreamError:
    error: str
    error_kind: str | None = None


@dataclass
class StreamSuccess:
    info: str | None = None


@dataclass
class StreamEnd:
    pass


@dataclass
class StreamIgnored:
    """A well-formed message this client has no use for (e.g. info notes)."""

    raw: dict[str, Any] = field(default_factory=dict)


StreamMessage = (
    StreamStart
    | StreamToken
    | StreamCodeFragment
    | StreamError
    | StreamSuccess
    | StreamEnd
    | StreamIgnored
)


class StreamMessageParseError(ValueError):
    """Raised when a stream line is not a recognizable message."""


def parse_stream_message(line: str) -> StreamMessage:
    """Parse one NDJSON line from the generation stream into a typed message."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise StreamMessageParseError(f"Invalid JSON in stream line: {e}") from e
    if not isinstance(data, dict):
        raise StreamMessageParseError("Stream line is not a JSON object")

    kind = data.get("message")
    if kind == "start":
        return StreamStart(info=data.get("info"))
    if kind == "token":
        token = data.get("designToken")
        if not isinstance(token, str) or not token:
            raise StreamMessageParseError("Token message without designToken")
        return StreamToken(design_token=token)
    if kind == "error":
        return StreamError(
            error=str(data.get("error") or "Unknown error in stream"),
            error_kind=data.get("errorKind"),
        )
    if kind == "success":
        return StreamSuccess(info=data.get("info"))
    if kind == "end":
        return StreamEnd()

    if "code" in data:
        code = data["code"]
        if not isinstance(code, str):
            raise StreamMessageParseError("Code fragment is not a string")
        try:
            chunk_index = int(data.get("chunkIndex", 0))
            total_chunks = int(data.get("totalChunks", 1))
        except (TypeError, ValueError) as e:
            raise StreamMessageParseError(f"Invalid fragment ordinal: {e}") from e
        return StreamCodeFragment(
            code=code,
            chunk_index=chunk_index,
            total_chunks=total_chunks,
            is_last=bool(data.get("isLast", False)),
        )

    if kind is not None:
        return StreamIgnored(raw=data)
    raise StreamMessageParseError("Stream line has neither a message type nor code")


def encode_stream_message(message: StreamMessage) -> str:
    """Serialize a typed message back to its NDJSON line (without newline)."""
    match message:
        case StreamStart(info=info):
            data: dict[str, Any] = {"message": "start"}
            if info:
                data["info"] = info
        case StreamToken(design_token=token):
            data = {"message": "token", "designToken": token}
        case StreamCodeFragment():
            data = {
                "code": message.code,
                "isLast": message.is_last,
                "chunkIndex": message.chunk_index,
                "totalChunks": message.total_chunks,
            }
        case StreamError(error=error, error_kind=error_kind):
            data = {"message": "error", "error": error}
            if error_kind:
                data["errorKind"] = error_kind
        case StreamSuccess(info=info):
            data = {"message": "success"}
            if info:
                data["info"] = info
        case StreamEnd():
            data = {"message": "end"}
        case StreamIgnored(raw=raw):
            data = raw
    return json.dumps(data)
