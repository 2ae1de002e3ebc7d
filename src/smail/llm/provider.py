"""LLM provider protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from smail.core.message import Message
    from smail.llm.events import StreamOptions
    from smail.llm.stream import EventStream


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for chat-completion providers used by agents."""

    model: str

    def stream(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        options: StreamOptions | None = None,
    ) -> EventStream:
        """Stream one assistant message as events.

        Args:
            messages: The conversation so far, system message first
            tools: Optional tool definitions in OpenAI function format
            options: Optional per-call options (temperature, max_tokens, ...)

        Returns:
            EventStream that yields StreamEvent instances
            and provides the final PartialMessage via .result()
        """
        ...

    async def close(self) -> None:
        """Close any open connections."""
        ...
