"""Base tool protocol and implementation."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

P = TypeVar("P", bound=BaseModel)


class ToolError(Exception):
    """Raised by tools to signal an execution error."""


class NoParams(BaseModel):
    """Parameters model for tools that take no input."""


class BaseTool(ABC, Generic[P]):
    """Base implementation for tools with typed parameters.

    Type parameter P is the Pydantic model for tool parameters. Results are
    structured (JSON-serialisable) values, not strings: they travel to the
    client inside tool-result events unchanged.
    """

    name: str
    description: str
    parameters: type[P]
    latency: float = 0.0

    def to_openai_schema(self) -> dict[str, Any]:
        """Convert to OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters.model_json_schema(),
            },
        }

    async def simulate_latency(self) -> None:
        """Wait for the configured latency of the backing service."""
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    @abstractmethod
    async def execute(self, params: P) -> Any:
        """Execute the tool with validated parameters.

        Args:
            params: The validated parameters

        Returns:
            The structured tool output
        """
        ...
