"""Tool palette and registry."""

from smail.tools.base import BaseTool, NoParams, ToolError
from smail.tools.email import (
    CHECK_CALENDAR,
    EMAIL_TOOL_ORDER,
    SEARCH_PERSON,
    WRITE_EMAIL,
    CheckCalendarTool,
    SearchPersonTool,
    WriteEmailTool,
    email_tools,
)
from smail.tools.ordering import ToolOrderGuard, ToolOrderViolation
from smail.tools.registry import ToolExecutionError, ToolExecutionResult, ToolRegistry

__all__ = [
    "BaseTool",
    "CHECK_CALENDAR",
    "CheckCalendarTool",
    "EMAIL_TOOL_ORDER",
    "NoParams",
    "SEARCH_PERSON",
    "SearchPersonTool",
    "ToolError",
    "ToolExecutionError",
    "ToolExecutionResult",
    "ToolOrderGuard",
    "ToolOrderViolation",
    "ToolRegistry",
    "WRITE_EMAIL",
    "WriteEmailTool",
    "email_tools",
]
