"""Wire protocol: stream event envelope and SSE framing."""

from smail.protocol.events import (
    EVENT_TYPES,
    Action,
    AudioEvent,
    ErrorEvent,
    ProgressState,
    ProgressUpdate,
    ProtocolError,
    StreamEvent,
    TextDelta,
    ToolCall,
    ToolResult,
    Transcription,
    parse_event,
    serialize_event,
)
from smail.protocol.sse import (
    SSEDecoder,
    decode_frame,
    format_comment,
    format_event,
    format_text_delta,
)

__all__ = [
    # Events
    "EVENT_TYPES",
    "Action",
    "AudioEvent",
    "ErrorEvent",
    "ProgressState",
    "ProgressUpdate",
    "ProtocolError",
    "StreamEvent",
    "TextDelta",
    "ToolCall",
    "ToolResult",
    "Transcription",
    "parse_event",
    "serialize_event",
    # SSE framing
    "SSEDecoder",
    "decode_frame",
    "format_comment",
    "format_event",
    "format_text_delta",
]
