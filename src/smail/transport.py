"""SSE transport: a write-side channel paired with a streaming HTTP response.

Producers push frames into an ``SSEChannel``; the response body drains it.
Writes never block. A channel whose buffer is full is failed for the rest of
the request, and a closed channel rejects further writes.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi.responses import StreamingResponse

from smail.logging_config import get_logger
from smail.protocol.events import ErrorEvent, ProgressUpdate, StreamEvent
from smail.protocol.sse import format_event, format_text_delta

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

logger = get_logger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

DEFAULT_MAX_BUFFERED_FRAMES = 1024


class TransportError(Exception):
    """Base error for SSE transport failures."""


class TransportClosedError(TransportError):
    """Raised when writing to a closed channel."""


class TransportOverflowError(TransportError):
    """Raised when the channel buffer is full. Fatal for the request."""


class SSEChannel:
    """Write side of an SSE response."""

    __slots__ = ("_queue", "_max_buffered", "_closed", "_failed")

    def __init__(self, max_buffered_frames: int = DEFAULT_MAX_BUFFERED_FRAMES) -> None:
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._max_buffered = max_buffered_frames
        self._closed = False
        self._failed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def writable(self) -> bool:
        """True while frames can still be written."""
        return not self._closed and not self._failed

    def write(self, frame: str | bytes) -> None:
        """Append an encoded frame to the response.

        Raises:
            TransportClosedError: if the channel was closed
            TransportOverflowError: if the buffer is full
        """
        if self._closed:
            raise TransportClosedError("SSE channel is closed")
        if self._failed:
            raise TransportOverflowError("SSE channel overflowed earlier in this request")
        if self._queue.qsize() >= self._max_buffered:
            self._failed = True
            raise TransportOverflowError(
                f"SSE buffer full ({self._max_buffered} frames); client is not reading"
            )
        data = frame.encode("utf-8") if isinstance(frame, str) else frame
        self._queue.put_nowait(data)

    def send(self, event: StreamEvent) -> None:
        """Write one event as a JSON data frame."""
        self.write(format_event(event))

    def send_text(self, text: str) -> None:
        """Write a raw text-delta frame."""
        self.write(format_text_delta(text))

    def close(self) -> None:
        """End the response once buffered frames are flushed. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def frames(self) -> AsyncIterator[bytes]:
        """Yield buffered frames until the channel is closed."""
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            yield frame


def _sse_response(body: AsyncIterator[bytes]) -> StreamingResponse:
    return StreamingResponse(body, media_type="text/event-stream", headers=SSE_HEADERS)


def open_sse(
    max_buffered_frames: int = DEFAULT_MAX_BUFFERED_FRAMES,
) -> tuple[SSEChannel, StreamingResponse]:
    """Allocate a channel and the response that drains it.

    The caller owns the channel and must close it on every exit path.
    """
    channel = SSEChannel(max_buffered_frames)
    return channel, _sse_response(channel.frames())


def emit_failure(channel: SSEChannel, error: BaseException) -> None:
    """Write the terminal error events for a failed stream, if still possible."""
    if not channel.writable:
        return
    message = str(error) or type(error).__name__
    try:
        channel.send(ProgressUpdate(state="error", text=message))
        channel.send(ErrorEvent(message=message))
    except TransportError:
        logger.warning("sse_error_event_dropped", error=message)


def create_sse_stream(
    producer: Callable[[SSEChannel], Awaitable[None]],
    *,
    max_buffered_frames: int = DEFAULT_MAX_BUFFERED_FRAMES,
    name: str = "sse_stream",
) -> StreamingResponse:
    """Run *producer* against a fresh channel and stream its frames.

    The producer starts when the response body is first iterated. Whatever
    happens inside it, the channel is closed afterwards; a failure is logged
    and reported to the client as ``progress_update(error)`` followed by an
    ``error`` event. If the client disconnects, the producer task is
    cancelled.
    """
    channel = SSEChannel(max_buffered_frames)

    async def run() -> None:
        try:
            await producer(channel)
        except TransportError:
            logger.warning("sse_transport_failed", stream=name, exc_info=True)
        except Exception as e:
            logger.exception("sse_producer_failed", stream=name)
            emit_failure(channel, e)
        finally:
            channel.close()

    async def body() -> AsyncIterator[bytes]:
        task = asyncio.create_task(run(), name=name)
        try:
            async for frame in channel.frames():
                yield frame
        finally:
            if not task.done():
                task.cancel()

    return _sse_response(body())
