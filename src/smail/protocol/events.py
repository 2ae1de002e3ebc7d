"""Wire events streamed from the assistant backend to the browser.

Every event is a pydantic model tagged by its ``type`` field and serialises
to a single line of JSON with camelCase keys. ``StreamEvent`` is the closed
union of all kinds; parsing anything outside it raises ``ProtocolError``.
"""

from __future__ import annotations

import base64
import json
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

ProgressState = Literal["in_progress", "complete", "error"]


class ProtocolError(Exception):
    """Raised when a payload is not a valid stream event."""


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class TextDelta(_WireModel):
    """Incremental assistant text."""

    type: Literal["text-delta"] = "text-delta"
    text: str


class ToolCall(_WireModel):
    """The agent decided to invoke a tool."""

    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ToolResult(_WireModel):
    """A previously announced tool call finished."""

    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    result: Any = None


class Action(_WireModel):
    """Instructs the client to run a named setter on a named piece of state."""

    type: Literal["action"] = "action"
    state_key: str
    setter_key: str
    args: list[Any] = Field(default_factory=list)
    content: str | None = None


class ProgressUpdate(_WireModel):
    """Coarse status narration."""

    type: Literal["progress_update"] = "progress_update"
    state: ProgressState
    text: str = ""


class Transcription(_WireModel):
    """What was heard on a voice-originated request."""

    type: Literal["transcription"] = "transcription"
    text: str = Field(alias="transcription")


class AudioEvent(_WireModel):
    """Synthesized speech for a block of assistant text."""

    type: Literal["audio"] = "audio"
    audio_data: bytes = b""
    audio_format: str = "audio/mpeg"
    content: str = ""

    @field_validator("audio_data", mode="before")
    @classmethod
    def _decode_audio(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return base64.b64decode(value, validate=True)
            except ValueError as e:
                raise ValueError("audioData must be base64") from e
        return value

    @field_serializer("audio_data")
    def _encode_audio(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")


class ErrorEvent(_WireModel):
    """Terminal failure; nothing follows it on the stream."""

    type: Literal["error"] = "error"
    message: str


StreamEvent = Annotated[
    TextDelta
    | ToolCall
    | ToolResult
    | Action
    | ProgressUpdate
    | Transcription
    | AudioEvent
    | ErrorEvent,
    Field(discriminator="type"),
]

EVENT_TYPES: frozenset[str] = frozenset(
    {
        "text-delta",
        "tool-call",
        "tool-result",
        "action",
        "progress_update",
        "transcription",
        "audio",
        "error",
    }
)

_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def serialize_event(event: StreamEvent) -> str:
    """Serialise an event to one line of JSON."""
    return event.model_dump_json(by_alias=True, exclude_none=True)


def parse_event(data: str | bytes | dict[str, Any]) -> StreamEvent:
    """Parse a JSON payload (or decoded mapping) into a typed event.

    Raises:
        ProtocolError: if the payload is not JSON, has no known ``type``,
            or does not match the schema for its type.
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Event payload is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError(f"Event payload must be an object, got {type(data).__name__}")

    event_type = data.get("type")
    if event_type not in EVENT_TYPES:
        raise ProtocolError(f"Unknown event type: {event_type!r}")

    try:
        return _adapter.validate_python(data)
    except ValidationError as e:
        raise ProtocolError(f"Invalid {event_type} event: {e}") from e
