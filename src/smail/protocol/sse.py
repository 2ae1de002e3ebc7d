"""Server-Sent Events framing for stream events.

Two frame shapes share one channel:

- ``data: <json>\\n\\n`` for every structured event.
- ``data:<text>\\n\\n`` for the text-delta fast path. Backslashes and line
  breaks in the text are backslash-escaped, as is a leading ``{``, so raw
  text never reads as a JSON frame.
"""

from __future__ import annotations

import json
import re

from smail.protocol.events import StreamEvent, TextDelta, parse_event, serialize_event


def format_event(event: StreamEvent) -> str:
    """Return a JSON data frame for an event."""
    return f"data: {serialize_event(event)}\n\n"


_ESCAPES = {"n": "\n", "r": "\r"}
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_LEADING_BRACE_RE = re.compile(r"^( ?)\{")


def format_text_delta(text: str) -> str:
    """Return a raw text-delta frame."""
    escaped = text.replace("\\", "\\\\").replace("\n", "\\n").replace("\r", "\\r")
    escaped = _LEADING_BRACE_RE.sub(r"\1\\{", escaped)
    return f"data:{escaped}\n\n"


def format_comment(comment: str = "keep-alive") -> str:
    """Return an SSE comment frame. Clients ignore these."""
    sanitized = comment.replace("\n", " ").strip() or "keep-alive"
    return f": {sanitized}\n\n"


def decode_frame(frame: str) -> StreamEvent | None:
    """Decode one frame (without the trailing blank line).

    Returns None for frames that carry no data (comments, empty frames).

    Raises:
        ProtocolError: for a JSON frame whose ``type`` is unknown or whose
            fields don't match the schema.
    """
    data_lines = [line[5:] for line in frame.split("\n") if line.startswith("data:")]
    if not data_lines:
        return None

    payload = "\n".join(data_lines)
    candidate = payload[1:] if payload.startswith(" ") else payload
    if candidate.startswith("{"):
        try:
            obj = json.loads(candidate)
        except json.JSONDecodeError:
            obj = None
        if isinstance(obj, dict) and "type" in obj:
            return parse_event(obj)

    return TextDelta(text=_unescape(payload))


def _unescape(payload: str) -> str:
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), payload)


class SSEDecoder:
    """Incremental decoder that turns arbitrary text chunks into events.

    Frames may be split across chunks; partial frames are buffered until
    their terminating blank line arrives.
    """

    __slots__ = ("_buffer",)

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, chunk: str) -> list[StreamEvent]:
        """Add a chunk and return the events of every completed frame."""
        self._buffer += chunk.replace("\r\n", "\n")
        events: list[StreamEvent] = []
        while "\n\n" in self._buffer:
            frame, self._buffer = self._buffer.split("\n\n", 1)
            event = decode_frame(frame)
            if event is not None:
                events.append(event)
        return events

    @property
    def pending(self) -> str:
        """Buffered text of an incomplete trailing frame."""
        return self._buffer
