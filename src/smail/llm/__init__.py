"""LLM provider components."""

from smail.llm.events import (
    ContentBlock,
    DoneEvent,
    ErrorEvent,
    PartialMessage,
    StartEvent,
    StopReason,
    StreamEvent,
    StreamOptions,
    TextBlock,
    TextDeltaEvent,
    TextEndEvent,
    TextStartEvent,
    ToolCallBlock,
    ToolCallDeltaEvent,
    ToolCallEndEvent,
    ToolCallStartEvent,
    ToolChoice,
    Usage,
)
from smail.llm.openai_compat import LLMError, OpenAICompatibleProvider
from smail.llm.provider import LLMProvider
from smail.llm.retry import RetryConfig, with_retry
from smail.llm.stream import EventStream

__all__ = [
    # Providers
    "LLMError",
    "LLMProvider",
    "OpenAICompatibleProvider",
    # Event stream
    "EventStream",
    # Events
    "ContentBlock",
    "DoneEvent",
    "ErrorEvent",
    "PartialMessage",
    "StartEvent",
    "StopReason",
    "StreamEvent",
    "StreamOptions",
    "TextBlock",
    "TextDeltaEvent",
    "TextEndEvent",
    "TextStartEvent",
    "ToolCallBlock",
    "ToolCallDeltaEvent",
    "ToolCallEndEvent",
    "ToolCallStartEvent",
    "ToolChoice",
    "Usage",
    # Retry
    "RetryConfig",
    "with_retry",
]
