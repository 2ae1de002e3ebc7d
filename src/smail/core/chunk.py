"""Agent output chunk types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from smail.core.message import ToolCall, ToolResult

AgentChunkType = Literal["text-delta", "tool-call", "tool-result"]


@dataclass(slots=True)
class TextDeltaChunk:
    """A streamed text token from the assistant."""

    payload: str
    type: Literal["text-delta"] = "text-delta"


@dataclass(slots=True)
class ToolCallChunk:
    """Completed tool call emitted by the model."""

    payload: ToolCall
    type: Literal["tool-call"] = "tool-call"


@dataclass(slots=True)
class ToolResultChunk:
    """Result from executing a tool call."""

    payload: ToolResult
    type: Literal["tool-result"] = "tool-result"


AgentChunk = TextDeltaChunk | ToolCallChunk | ToolResultChunk
