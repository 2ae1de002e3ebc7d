"""Client-side reducer: stream events in, chat transcript and state out."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, assert_never
from uuid import uuid4

from smail.client.state import StateContainer, UnknownSetterError
from smail.logging_config import get_logger
from smail.protocol.events import (
    Action,
    AudioEvent,
    ErrorEvent,
    ProgressUpdate,
    TextDelta,
    ToolCall,
    ToolResult,
    Transcription,
)
from smail.protocol.sse import SSEDecoder

if TYPE_CHECKING:
    from smail.protocol.events import StreamEvent

logger = get_logger(__name__)


class MessageType(StrEnum):
    TEXT = "text"
    TOOL_CALL = "tool-call"
    TOOL_RESULT = "tool-result"
    ACTION = "action"
    TRANSCRIPTION = "transcription"
    AUDIO = "audio"
    ERROR = "error"


class RunStatus(StrEnum):
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(slots=True)
class ChatMessage:
    """One transcript entry. ``completed`` only matters for tool calls."""

    type: MessageType
    role: str = "assistant"
    content: str = ""
    tool_call_id: str | None = None
    tool_name: str | None = None
    payload: Any = None
    completed: bool = False
    id: str = field(default_factory=lambda: uuid4().hex[:12])


class MessageReducer:
    """Applies stream events to a transcript and a state container.

    Tool results are matched to their call by ``toolCallId``; an unknown id
    falls back to the most recent incomplete tool call. A run that ends
    without ``progress_update(complete)`` is treated as failed.
    """

    __slots__ = (
        "state",
        "messages",
        "progress",
        "status",
        "error",
        "_tool_calls",
        "_decoder",
    )

    def __init__(self, state: StateContainer | None = None) -> None:
        self.state = state or StateContainer()
        self.messages: list[ChatMessage] = []
        self.progress: ProgressUpdate | None = None
        self.status = RunStatus.STREAMING
        self.error: str | None = None
        self._tool_calls: dict[str, ChatMessage] = {}
        self._decoder = SSEDecoder()

    def feed(self, chunk: str) -> list[StreamEvent]:
        """Decode raw SSE text and apply every complete frame."""
        events = self._decoder.feed(chunk)
        for event in events:
            self.apply(event)
        return events

    def finish(self, *, require_complete: bool = True) -> RunStatus:
        """Mark the end of the HTTP response.

        Spell streams carry a single action and no completion event; pass
        ``require_complete=False`` for those.
        """
        if self._decoder.pending.strip():
            logger.warning("sse_trailing_partial_frame", size=len(self._decoder.pending))
        if self.status is RunStatus.STREAMING:
            if require_complete:
                self.status = RunStatus.FAILED
                self.error = self.error or "Stream ended before completion"
            else:
                self.status = RunStatus.COMPLETE
        return self.status

    def apply(self, event: StreamEvent) -> None:
        """Apply one event."""
        match event:
            case TextDelta(text=text):
                self._append_text(text)

            case ToolCall():
                message = ChatMessage(
                    type=MessageType.TOOL_CALL,
                    tool_call_id=event.tool_call_id,
                    tool_name=event.tool_name,
                    payload=event.args,
                )
                self.messages.append(message)
                self._tool_calls[event.tool_call_id] = message

            case ToolResult():
                call = self._find_tool_call(event.tool_call_id)
                if call is not None:
                    call.completed = True
                self.messages.append(
                    ChatMessage(
                        type=MessageType.TOOL_RESULT,
                        tool_call_id=event.tool_call_id,
                        tool_name=event.tool_name,
                        payload=event.result,
                    )
                )

            case Action():
                self._apply_action(event)

            case ProgressUpdate(state=state):
                self.progress = event
                if state == "complete":
                    self.status = RunStatus.COMPLETE
                elif state == "error":
                    self.status = RunStatus.FAILED
                    self.error = event.text or self.error

            case Transcription(text=text):
                self.messages.append(
                    ChatMessage(type=MessageType.TRANSCRIPTION, role="user", content=text)
                )

            case AudioEvent():
                self.messages.append(
                    ChatMessage(
                        type=MessageType.AUDIO,
                        content=event.content,
                        payload={"audioData": event.audio_data, "audioFormat": event.audio_format},
                    )
                )

            case ErrorEvent(message=message):
                self.status = RunStatus.FAILED
                self.error = message
                self.messages.append(ChatMessage(type=MessageType.ERROR, content=message))

            case _:
                assert_never(event)

    def _append_text(self, text: str) -> None:
        last = self.messages[-1] if self.messages else None
        if last is not None and last.type is MessageType.TEXT and last.role == "assistant":
            last.content += text
        else:
            self.messages.append(ChatMessage(type=MessageType.TEXT, content=text))

    def _find_tool_call(self, tool_call_id: str) -> ChatMessage | None:
        if tool_call_id in self._tool_calls:
            return self._tool_calls[tool_call_id]
        for message in reversed(self.messages):
            if message.type is MessageType.TOOL_CALL and not message.completed:
                return message
        return None

    def _apply_action(self, event: Action) -> None:
        applied = True
        try:
            self.state.dispatch(event.state_key, event.setter_key, list(event.args))
        except UnknownSetterError:
            logger.warning(
                "action_setter_missing",
                state_key=event.state_key,
                setter_key=event.setter_key,
            )
            applied = False
        self.messages.append(
            ChatMessage(
                type=MessageType.ACTION,
                content=event.content or "",
                payload={
                    "stateKey": event.state_key,
                    "setterKey": event.setter_key,
                    "args": list(event.args),
                    "applied": applied,
                },
            )
        )

    @property
    def text(self) -> str:
        """All assistant text of the run, concatenated."""
        return "".join(
            m.content for m in self.messages if m.type is MessageType.TEXT and m.role == "assistant"
        )

    def tool_call(self, tool_call_id: str) -> ChatMessage | None:
        return self._tool_calls.get(tool_call_id)
