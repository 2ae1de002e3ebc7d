"""Message types for the agent conversation."""

import json
from enum import StrEnum
from typing import Any, Self
from uuid import uuid4

from pydantic import BaseModel, Field


class Role(StrEnum):
    """Message roles following OpenAI convention."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class ToolCall(BaseModel):
    """A tool call from the assistant."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to OpenAI API format."""
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.name,
                "arguments": json.dumps(self.arguments),
            },
        }


class ToolResult(BaseModel):
    """Result from executing a tool.

    ``result`` is the tool's structured output; ``is_error`` marks results
    produced in place of an execution (e.g. a rejected out-of-order call).
    """

    tool_call_id: str
    name: str
    result: Any = None
    is_error: bool = False

    def to_content(self) -> str:
        """Serialize the result for the model."""
        if isinstance(self.result, str):
            return self.result
        return json.dumps(self.result)


class Message(BaseModel):
    """A message in the conversation."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    role: Role
    content: str
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None  # For tool results

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to OpenAI API format."""
        d: dict[str, Any] = {"role": self.role.value, "content": self.content}

        if self.tool_calls:
            d["tool_calls"] = [tc.to_api_dict() for tc in self.tool_calls]

        if self.tool_call_id:
            d["tool_call_id"] = self.tool_call_id

        return d

    @classmethod
    def user(cls, content: str) -> Self:
        """Create a user message."""
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: list[ToolCall] | None = None) -> Self:
        """Create an assistant message."""
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tool_calls)

    @classmethod
    def system(cls, content: str) -> Self:
        """Create a system message."""
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def tool_result(cls, result: ToolResult) -> Self:
        """Create a tool result message."""
        return cls(role=Role.TOOL, content=result.to_content(), tool_call_id=result.tool_call_id)
