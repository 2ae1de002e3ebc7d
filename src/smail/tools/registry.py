"""Tool registry for lookup and execution."""

from dataclasses import dataclass, field
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ValidationError

from smail.tools.base import BaseTool, ToolError

P = TypeVar("P", bound=BaseModel)


@dataclass(slots=True)
class ToolExecutionError:
    """Structured tool failure details."""

    kind: Literal["unknown_tool", "validation", "tool_error", "unexpected"]
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ToolExecutionResult:
    """Result of executing a tool with an error flag."""

    result: Any = None
    is_error: bool = False
    error: ToolExecutionError | None = None


class ToolRegistry:
    """Registry for tool lookup and execution.

    Registration order is the palette order advertised to the model.
    """

    __slots__ = ("_tools",)

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool[Any]] = {}

    def register(self, tool: BaseTool[P]) -> None:
        """Register a tool by name."""
        self._tools[tool.name] = tool

    def get(self, name: str) -> BaseTool[Any] | None:
        """Get a tool by name."""
        return self._tools.get(name)

    async def execute(self, name: str, arguments: dict[str, Any]) -> ToolExecutionResult:
        """Execute a tool with JSON arguments, returning the result + structured error info.

        Args:
            name: The tool name
            arguments: The tool arguments as a dictionary

        Returns:
            ToolExecutionResult with result and is_error flag
        """
        tool = self._tools.get(name)
        if tool is None:
            return ToolExecutionResult(
                is_error=True,
                error=ToolExecutionError(kind="unknown_tool", message=f"Unknown tool: {name}"),
            )

        try:
            params = tool.parameters.model_validate(arguments)
            return ToolExecutionResult(result=await tool.execute(params))
        except ToolError as e:
            return ToolExecutionResult(
                is_error=True,
                error=ToolExecutionError(kind="tool_error", message=str(e)),
            )
        except ValidationError as e:
            return ToolExecutionResult(
                is_error=True,
                error=ToolExecutionError(
                    kind="validation",
                    message=f"Invalid parameters: {e}",
                    details={"errors": e.errors(include_url=False)},
                ),
            )
        except Exception as e:
            return ToolExecutionResult(
                is_error=True,
                error=ToolExecutionError(kind="unexpected", message=f"{type(e).__name__}: {e}"),
            )

    def get_schemas(self) -> list[dict[str, Any]]:
        """Get OpenAI function schemas for all tools."""
        return [t.to_openai_schema() for t in self._tools.values()]

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
