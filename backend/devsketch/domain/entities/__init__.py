from .chat_message import ChatMessage, TokenUsage, ChatCompletionResult
from .design import (
    Design,
    Element,
    PersistenceMode,
    LOCAL_DESIGN_PREFIX,
    is_local_design_id,
    local_design_id,
    new_session_id,
)
from .generation import (
    GenerationMode,
    GenerationProgress,
    GenerationRequest,
    GenerationResult,
    StreamCodeFragment,
    StreamEnd,
    StreamError,
    StreamIgnored,
    StreamMessage,
    StreamMessageParseError,
    StreamStart,
    StreamSuccess,
    StreamToken,
    encode_stream_message,
    parse_stream_message,
)
from .sketch import UIHint, annotate_shape, annotate_shapes, ui_hint_for

__all__ = [
    "ChatMessage",
    "TokenUsage",
    "ChatCompletionResult",
    "Design",
    "Element",
    "PersistenceMode",
    "LOCAL_DESIGN_PREFIX",
    "is_local_design_id",
    "local_design_id",
    "new_session_id",
    "GenerationMode",
    "GenerationProgress",
    "GenerationRequest",
    "GenerationResult",
    "StreamCodeFragment",
    "StreamEnd",
    "StreamError",
    "StreamIgnored",
    "StreamMessage",
    "StreamMessageParseError",
    "StreamStart",
    "StreamSuccess",
    "StreamToken",
    "encode_stream_message",
    "parse_stream_message",
    "UIHint",
    "annotate_shape",
    "annotate_shapes",
    "ui_hint_for",
]
