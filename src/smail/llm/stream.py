"""Provider event stream: one assistant message, consumed as it arrives."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from smail.llm.events import ErrorEvent, PartialMessage

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Coroutine
    from typing import Any

    from smail.llm.events import StreamEvent

_TERMINAL = ("done", "error")


class EventStream:
    """Events of a single provider call.

    The provider pushes events from a background task it hands over with
    ``start()``; the agent iterates them once. A ``done`` or ``error`` event
    ends the stream and resolves ``result()``. Anything pushed after that
    is dropped.
    """

    __slots__ = ("_queue", "_ended", "_aborted", "_message", "_task")

    def __init__(self) -> None:
        self._queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
        self._ended = False
        self._aborted = False
        self._message: asyncio.Future[PartialMessage] | None = None
        self._task: asyncio.Task[None] | None = None

    def start(self, producer: Coroutine[Any, Any, None]) -> EventStream:
        """Run ``producer`` as this stream's background task."""
        self._task = asyncio.create_task(producer)
        return self

    def push(self, event: StreamEvent) -> None:
        if self._ended:
            return
        self._queue.put_nowait(event)
        if event.type in _TERMINAL:
            self.end(event.message)  # type: ignore[union-attr]

    def end(self, message: PartialMessage | None = None) -> None:
        """Close the stream. ``result()`` gets ``message`` unless already set."""
        if not self._ended:
            self._ended = True
            self._queue.put_nowait(None)
        future = self._future()
        if not future.done():
            future.set_result(message if message is not None else PartialMessage())

    def abort(self, reason: str = "aborted") -> None:
        """End the stream with an ``aborted`` error event."""
        if self._ended:
            return
        self._aborted = True
        self.push(
            ErrorEvent(
                stop_reason="aborted",
                message=PartialMessage(stop_reason="aborted", error_message=reason),
            )
        )

    @property
    def aborted(self) -> bool:
        return self._aborted

    async def result(self) -> PartialMessage:
        """The final message, once the stream has ended."""
        return await self._future()

    def _future(self) -> asyncio.Future[PartialMessage]:
        if self._message is None:
            self._message = asyncio.get_running_loop().create_future()
        return self._message

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        return self

    async def __anext__(self) -> StreamEvent:
        event = await self._queue.get()
        if event is None:
            # Leave the sentinel for any later iteration
            self._queue.put_nowait(None)
            raise StopAsyncIteration
        return event
