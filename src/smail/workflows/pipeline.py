"""Minimal sequential workflow: named steps over one shared context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from smail.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = get_logger(__name__)

C = TypeVar("C")


class WorkflowError(Exception):
    """A step failed; the run is abandoned."""

    def __init__(self, workflow_id: str, step_id: str, cause: Exception):
        self.workflow_id = workflow_id
        self.step_id = step_id
        self.cause = cause
        super().__init__(f"{workflow_id}: step '{step_id}' failed: {cause}")


@dataclass(slots=True, frozen=True)
class Step(Generic[C]):
    """One stage: an async transform of the workflow context."""

    id: str
    execute: Callable[[C], Awaitable[C]]
    description: str = ""


@dataclass(slots=True)
class Workflow(Generic[C]):
    """Steps run strictly in order, once each; no retries, no branching."""

    id: str
    steps: list[Step[C]] = field(default_factory=list)

    def then(self, step: Step[C]) -> Workflow[C]:
        """Append a step, returning the workflow for chaining."""
        if any(s.id == step.id for s in self.steps):
            raise ValueError(f"Duplicate step id: {step.id}")
        self.steps.append(step)
        return self

    async def run(self, context: C) -> C:
        """Run every step and return the final context.

        Raises:
            WorkflowError: wrapping the first exception raised by a step
        """
        for step in self.steps:
            try:
                context = await step.execute(context)
            except Exception as e:
                logger.error(
                    "workflow_step_failed",
                    workflow=self.id,
                    step=step.id,
                    error=str(e),
                )
                raise WorkflowError(self.id, step.id, e) from e
        return context
