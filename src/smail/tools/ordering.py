"""Run-time guard for a prescribed tool invocation order."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class ToolOrderViolation(Exception):
    """A tool was called before the tools that must precede it."""

    def __init__(self, tool_name: str, expected: str):
        self.tool_name = tool_name
        self.expected = expected
        super().__init__(f"Tool '{tool_name}' called out of order; call '{expected}' first")


class ToolOrderGuard:
    """Tracks progress through an ordered tool palette for one agent run.

    A call is allowed when it is the next tool in the sequence or one that
    has already been satisfied. Tools outside the sequence are unrestricted.
    """

    __slots__ = ("_order", "_position")

    def __init__(self, order: Sequence[str]) -> None:
        self._order = list(order)
        self._position = 0

    @property
    def expected(self) -> str | None:
        """Next tool in the sequence, or None once all are satisfied."""
        if self._position < len(self._order):
            return self._order[self._position]
        return None

    def check(self, tool_name: str) -> None:
        """Raise ToolOrderViolation if ``tool_name`` skips ahead."""
        if tool_name not in self._order:
            return
        index = self._order.index(tool_name)
        if index > self._position:
            raise ToolOrderViolation(tool_name, self._order[self._position])

    def record(self, tool_name: str) -> None:
        """Mark a successful call of ``tool_name``."""
        if self.expected == tool_name:
            self._position += 1

    def reset(self) -> None:
        self._position = 0
