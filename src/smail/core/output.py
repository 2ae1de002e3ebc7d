"""Agent run results: single-shot output and the lazy chunk stream."""

from __future__ import annotations

from contextlib import aclosing
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from smail.llm.events import Usage

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from smail.core.chunk import AgentChunk


@dataclass(slots=True)
class RunState:
    """Accumulated outcome of one agent run, filled in while it streams."""

    text: str = ""
    last_text: str = ""
    usage: Usage = field(default_factory=Usage)
    turns: int = 0


@dataclass(slots=True)
class AgentOutput:
    """Result of a single-shot agent run."""

    content: str
    usage: Usage = field(default_factory=Usage)
    object: Any = None


class AgentStream:
    """Lazy, single-pass stream of agent chunks.

    Iterate it once for the chunks. ``text()`` and ``usage()`` resolve only
    after the chunk sequence is exhausted; awaiting either before iterating
    drains the stream first. A failure raised while streaming is re-raised
    by both.
    """

    __slots__ = ("_source", "_state", "_started", "_exhausted", "_error")

    def __init__(self, source: Callable[[RunState], AsyncIterator[AgentChunk]]) -> None:
        self._state = RunState()
        self._source = source(self._state)
        self._started = False
        self._exhausted = False
        self._error: BaseException | None = None

    def __aiter__(self) -> AsyncIterator[AgentChunk]:
        if self._started:
            raise RuntimeError("AgentStream can only be iterated once")
        self._started = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[AgentChunk]:
        try:
            async with aclosing(self._source) as source:
                async for chunk in source:
                    yield chunk
        except Exception as e:
            self._error = e
            raise
        self._exhausted = True

    async def _wait(self) -> RunState:
        if not self._started:
            async for _ in self:
                pass
        if self._error is not None:
            raise self._error
        if not self._exhausted:
            raise RuntimeError("AgentStream has not been fully consumed")
        return self._state

    async def text(self) -> str:
        """Concatenated assistant text of the whole run."""
        return (await self._wait()).text

    async def usage(self) -> Usage:
        """Token usage summed over every model call of the run."""
        return (await self._wait()).usage

    async def aclose(self) -> None:
        """Stop the underlying run early."""
        aclose = getattr(self._source, "aclose", None)
        if aclose is not None:
            await aclose()

    @property
    def exhausted(self) -> bool:
        return self._exhausted
