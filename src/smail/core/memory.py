"""Conversation memory addressed by (resource_id, thread_id)."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from smail.core.message import Role

if TYPE_CHECKING:
    from smail.core.message import Message


@runtime_checkable
class MemoryStore(Protocol):
    """Storage for prior conversation turns.

    Concurrency control between writers to the same thread is the
    store's concern, not the agent's.
    """

    async def load(self, resource_id: str, thread_id: str) -> list[Message]:
        """Return the stored messages of a thread, oldest first."""
        ...

    async def append(self, resource_id: str, thread_id: str, messages: list[Message]) -> None:
        """Append messages to a thread."""
        ...


class InMemoryMemoryStore:
    """Process-local memory store.

    System messages are never stored; every turn rebuilds its own.
    """

    __slots__ = ("_threads", "_lock")

    def __init__(self) -> None:
        self._threads: dict[tuple[str, str], list[Message]] = {}
        self._lock = asyncio.Lock()

    async def load(self, resource_id: str, thread_id: str) -> list[Message]:
        async with self._lock:
            return list(self._threads.get((resource_id, thread_id), []))

    async def append(self, resource_id: str, thread_id: str, messages: list[Message]) -> None:
        async with self._lock:
            thread = self._threads.setdefault((resource_id, thread_id), [])
            thread.extend(m for m in messages if m.role != Role.SYSTEM)

    def threads(self) -> list[tuple[str, str]]:
        """List stored thread keys."""
        return list(self._threads)
