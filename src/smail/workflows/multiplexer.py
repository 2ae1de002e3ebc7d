"""Translate an agent's chunk stream into protocol events on an SSE channel.

Text deltas pass straight through in text mode. In voice mode they are
held back and spoken as one ``audio`` event just before the next tool
boundary, or at the end of the stream. A result from the finalize tool is
followed by an ``action`` that copies the drafted email into the compose
draft.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, assert_never

from smail.core.chunk import TextDeltaChunk, ToolCallChunk, ToolResultChunk
from smail.logging_config import get_logger
from smail.protocol.events import (
    Action,
    AudioEvent,
    ProgressUpdate,
    TextDelta,
    ToolCall,
    ToolResult,
)
from smail.voice.base import SynthesisError, VoiceOptions

if TYPE_CHECKING:
    from collections.abc import AsyncIterable

    from smail.core.chunk import AgentChunk
    from smail.transport import SSEChannel
    from smail.voice.base import VoiceAdapter

logger = get_logger(__name__)

THINKING_TEXT = "Thinking..."
COMPLETE_TEXT = "Generated email"

DRAFT_STATE_KEY = "emailDraft"
DRAFT_SETTER_KEY = "draftReply"


def draft_action(result: Any, content: str | None = None) -> Action:
    """Action replacing the compose draft body with a finalize-tool result."""
    email = result.get("email", "") if isinstance(result, dict) else ""
    return Action(
        state_key=DRAFT_STATE_KEY,
        setter_key=DRAFT_SETTER_KEY,
        args=[email or ""],
        content=content,
    )


class StreamMultiplexer:
    """Writes one agent run onto one channel. Single use."""

    __slots__ = (
        "channel",
        "finalize_tool",
        "voice",
        "voice_options",
        "raw_text_deltas",
        "_pending_text",
    )

    def __init__(
        self,
        channel: SSEChannel,
        *,
        finalize_tool: str,
        voice: VoiceAdapter | None = None,
        voice_options: VoiceOptions | None = None,
        raw_text_deltas: bool = False,
    ) -> None:
        """Initialize the multiplexer.

        Args:
            channel: Open SSE channel to write to
            finalize_tool: Tool whose result becomes a draft action
            voice: Speech adapter; when set the stream runs in voice mode
            voice_options: Synthesis voice and speed
            raw_text_deltas: Use the ``data:<text>`` fast path for text
        """
        self.channel = channel
        self.finalize_tool = finalize_tool
        self.voice = voice
        self.voice_options = voice_options or VoiceOptions()
        self.raw_text_deltas = raw_text_deltas
        self._pending_text = ""

    @property
    def is_voice(self) -> bool:
        return self.voice is not None

    async def run(self, chunks: AsyncIterable[AgentChunk]) -> None:
        """Translate every chunk, bracketed by progress events."""
        self.start()
        async for chunk in chunks:
            await self.handle(chunk)
        await self.finish()

    def start(self) -> None:
        self.channel.send(ProgressUpdate(state="in_progress", text=THINKING_TEXT))

    async def handle(self, chunk: AgentChunk) -> None:
        """Translate one chunk."""
        match chunk:
            case TextDeltaChunk(payload=text):
                self._on_text(text)

            case ToolCallChunk(payload=call):
                await self.flush_voice()
                self.channel.send(
                    ToolCall(tool_call_id=call.id, tool_name=call.name, args=call.arguments)
                )

            case ToolResultChunk(payload=result):
                await self.flush_voice()
                self.channel.send(
                    ToolResult(
                        tool_call_id=result.tool_call_id,
                        tool_name=result.name,
                        result=result.result,
                    )
                )
                if result.name == self.finalize_tool and not result.is_error:
                    self.channel.send(draft_action(result.result))

            case _:
                assert_never(chunk)

    async def finish(self) -> None:
        """Speak any held-back text and signal completion."""
        await self.flush_voice()
        self.channel.send(ProgressUpdate(state="complete", text=COMPLETE_TEXT))

    def _on_text(self, text: str) -> None:
        if not text:
            return
        if self.is_voice:
            self._pending_text += text
        elif self.raw_text_deltas:
            self.channel.send_text(text)
        else:
            self.channel.send(TextDelta(text=text))

    async def flush_voice(self) -> None:
        """Synthesize pending text into one audio event and clear it."""
        if self.voice is None or not self._pending_text:
            return
        text, self._pending_text = self._pending_text, ""

        try:
            audio = await self.voice.synthesize(text, self.voice_options)
        except SynthesisError as e:
            logger.warning("speech_synthesis_failed", error=str(e), characters=len(text))
            audio = b""

        self.channel.send(
            AudioEvent(audio_data=audio, audio_format=self.voice.output_format, content=text)
        )
