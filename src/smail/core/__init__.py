"""Agent invocation engine."""

from smail.core.agent import (
    Agent,
    AgentError,
    AgentOptions,
    StructuredOutputError,
    ToolExecutionFailed,
)
from smail.core.chunk import AgentChunk, TextDeltaChunk, ToolCallChunk, ToolResultChunk
from smail.core.config import Config, ServerConfig, VoiceConfig
from smail.core.memory import InMemoryMemoryStore, MemoryStore
from smail.core.message import Message, Role, ToolCall, ToolResult
from smail.core.output import AgentOutput, AgentStream

__all__ = [
    "Agent",
    "AgentChunk",
    "AgentError",
    "AgentOptions",
    "AgentOutput",
    "AgentStream",
    "Config",
    "InMemoryMemoryStore",
    "MemoryStore",
    "Message",
    "Role",
    "ServerConfig",
    "StructuredOutputError",
    "TextDeltaChunk",
    "ToolCall",
    "ToolCallChunk",
    "ToolExecutionFailed",
    "ToolResult",
    "ToolResultChunk",
    "VoiceConfig",
]
