"""Helpers for reading back what was written to an SSE channel."""

from __future__ import annotations

from typing import TYPE_CHECKING

from smail.protocol.sse import SSEDecoder

if TYPE_CHECKING:
    from smail.protocol.events import StreamEvent
    from smail.transport import SSEChannel


async def drain_events(channel: SSEChannel) -> list[StreamEvent]:
    """Close ``channel`` and decode everything written to it."""
    channel.close()
    decoder = SSEDecoder()
    events: list[StreamEvent] = []
    async for frame in channel.frames():
        events.extend(decoder.feed(frame.decode("utf-8")))
    assert decoder.pending == ""
    return events


def decode_body(body: str) -> list[StreamEvent]:
    """Decode a complete SSE response body."""
    decoder = SSEDecoder()
    events = decoder.feed(body)
    assert decoder.pending == ""
    return events


def event_types(events: list[StreamEvent]) -> list[str]:
    return [e.type for e in events]
