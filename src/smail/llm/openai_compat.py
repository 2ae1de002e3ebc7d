"""OpenAI-compatible chat-completions provider with event-based streaming.

Works with OpenAI and any endpoint speaking the same wire format
(OpenRouter, Groq, Ollama, LM Studio, ...).

Supports:
- Tool use with tool_choice modes
- Structured output via response_format
- Request cancellation and retry with exponential backoff
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from smail.llm.events import (
    DoneEvent,
    ErrorEvent,
    PartialMessage,
    StartEvent,
    StopReason,
    StreamOptions,
    TextBlock,
    TextDeltaEvent,
    TextEndEvent,
    TextStartEvent,
    ToolCallBlock,
    ToolCallDeltaEvent,
    ToolCallEndEvent,
    ToolCallStartEvent,
    Usage,
)
from smail.llm.retry import RetryConfig, with_retry
from smail.llm.stream import EventStream
from smail.logging_config import get_logger

if TYPE_CHECKING:
    from smail.core.message import Message

logger = get_logger(__name__)


class LLMError(Exception):
    """Error from the LLM API with parsed message."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def parse_api_error(response: httpx.Response) -> str:
    """Extract an error message from an OpenAI-style error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict) and "error" in data:
        error = data["error"]
        if isinstance(error, dict):
            return str(error.get("message", error))
        return str(error)
    return response.text or f"HTTP {response.status_code}"


def _map_stop_reason(openai_reason: str | None) -> StopReason:
    """Map OpenAI finish reason to our StopReason type."""
    mapping: dict[str | None, StopReason] = {
        "stop": "stop",
        "tool_calls": "tool_use",
        "length": "length",
        "content_filter": "stop",
        None: "stop",
    }
    return mapping.get(openai_reason, "stop")


@dataclass(slots=True)
class OpenAICompatibleProvider:
    """Provider for any OpenAI-compatible chat-completions API."""

    base_url: str
    api_key: str
    model: str
    temperature: float = 0.7
    max_tokens: int = 4096
    retry: RetryConfig = field(default_factory=RetryConfig)
    http_client: httpx.AsyncClient | None = field(default=None, repr=False)

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self.http_client is None:
            self.http_client = httpx.AsyncClient(
                base_url=self.base_url.rstrip("/"),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=httpx.Timeout(120.0, connect=10.0),
            )
        return self.http_client

    def _build_payload(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        options: StreamOptions | None,
    ) -> dict[str, Any]:
        """Build the API request payload."""
        max_tokens = options.max_tokens if options and options.max_tokens else self.max_tokens
        temp = (
            options.temperature if options and options.temperature is not None else self.temperature
        )

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_api_dict() for m in messages],
            "stream": True,
            "stream_options": {"include_usage": True},
            "max_tokens": max_tokens,
            "temperature": temp,
        }

        if options and options.response_format:
            payload["response_format"] = options.response_format

        if tools:
            payload["tools"] = tools
            tc = options.tool_choice if options else None
            if tc == "any":
                payload["tool_choice"] = "required"
            elif tc == "none":
                payload.pop("tools", None)
            elif isinstance(tc, dict) and "name" in tc:
                payload["tool_choice"] = {"type": "function", "function": {"name": tc["name"]}}
            else:
                payload["tool_choice"] = tc or "auto"

        return payload

    def stream(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        options: StreamOptions | None = None,
    ) -> EventStream:
        """Stream completion as events.

        The request runs in a background task owned by the returned stream;
        the final PartialMessage is available from .result().
        """
        stream = EventStream()
        return stream.start(self._stream_impl(messages, tools, options, stream))

    async def _stream_impl(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        options: StreamOptions | None,
        stream: EventStream,
    ) -> None:
        """Run the streaming request with retry and cancellation."""
        output = PartialMessage()

        text_started = False
        text_content = ""
        pending_tool_calls: dict[int, ToolCallBlock] = {}
        finish_reason: str | None = None

        def _check_cancelled() -> bool:
            return bool(options and options.cancel_event and options.cancel_event.is_set())

        async def _do_stream() -> None:
            nonlocal text_started, text_content, finish_reason

            if _check_cancelled():
                raise asyncio.CancelledError("Request cancelled")

            # A retried attempt starts from a clean message
            output.content.clear()
            pending_tool_calls.clear()
            text_started = False
            text_content = ""

            payload = self._build_payload(messages, tools, options)
            stream.push(StartEvent(partial=output))

            async with self.client.stream("POST", "/v1/chat/completions", json=payload) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise LLMError(parse_api_error(response), response.status_code)

                async for line in response.aiter_lines():
                    if _check_cancelled():
                        stream.abort("Request cancelled")
                        return

                    if not line.startswith("data: "):
                        continue

                    data_str = line[6:]
                    if data_str == "[DONE]":
                        break

                    try:
                        chunk = json.loads(data_str)
                    except json.JSONDecodeError:
                        continue

                    if chunk.get("usage"):
                        usage_data = chunk["usage"]
                        output.usage = Usage(
                            input=usage_data.get("prompt_tokens", 0),
                            output=usage_data.get("completion_tokens", 0),
                        )
                        output.usage.update_total()

                    choices = chunk.get("choices", [])
                    if not choices:
                        continue

                    choice = choices[0]
                    delta = choice.get("delta", {})

                    if choice.get("finish_reason"):
                        finish_reason = choice["finish_reason"]

                    if content := delta.get("content"):
                        if not text_started:
                            text_started = True
                            output.content.append(TextBlock(text=""))
                            stream.push(
                                TextStartEvent(
                                    content_index=len(output.content) - 1,
                                    partial=output,
                                )
                            )
                        text_content += content
                        if output.content and isinstance(output.content[-1], TextBlock):
                            output.content[-1].text = text_content
                        stream.push(
                            TextDeltaEvent(
                                content_index=len(output.content) - 1,
                                delta=content,
                                partial=output,
                            )
                        )

                    for tc in delta.get("tool_calls") or []:
                        idx = tc.get("index", 0)

                        if idx not in pending_tool_calls:
                            tool_block = ToolCallBlock(
                                id=tc.get("id", ""),
                                name=tc.get("function", {}).get("name", ""),
                            )
                            pending_tool_calls[idx] = tool_block
                            output.content.append(tool_block)
                            stream.push(
                                ToolCallStartEvent(
                                    content_index=len(output.content) - 1,
                                    tool_id=tool_block.id,
                                    tool_name=tool_block.name,
                                    partial=output,
                                )
                            )

                        tool_block = pending_tool_calls[idx]
                        if tc.get("id"):
                            tool_block.id = tc["id"]
                        if func := tc.get("function"):
                            if func.get("name"):
                                tool_block.name = func["name"]
                            if func.get("arguments"):
                                tool_block._partial_json += func["arguments"]
                                stream.push(
                                    ToolCallDeltaEvent(
                                        content_index=len(output.content) - 1,
                                        delta=func["arguments"],
                                        partial=output,
                                    )
                                )

        try:
            await with_retry(_do_stream, self.retry)

            if stream.aborted:
                return

            if text_started:
                stream.push(
                    TextEndEvent(
                        content_index=len(output.content) - 1,
                        text=text_content,
                        partial=output,
                    )
                )

            for idx in sorted(pending_tool_calls):
                tool_block = pending_tool_calls[idx]
                try:
                    args = json.loads(tool_block._partial_json) if tool_block._partial_json else {}
                except json.JSONDecodeError:
                    logger.warning(
                        "tool_call_arguments_invalid",
                        tool_name=tool_block.name,
                        raw=tool_block._partial_json[:200],
                    )
                    args = {}
                tool_block.arguments = args
                stream.push(
                    ToolCallEndEvent(
                        content_index=output.content.index(tool_block),
                        tool_call=tool_block,
                        partial=output,
                    )
                )

            output.stop_reason = _map_stop_reason(finish_reason)
            stream.push(DoneEvent(stop_reason=output.stop_reason, message=output))
            stream.end()

        except asyncio.CancelledError:
            output.error_message = "Request cancelled"
            output.stop_reason = "aborted"
            stream.push(ErrorEvent(stop_reason="aborted", message=output))
            stream.end(output)

        except Exception as e:
            logger.warning("llm_stream_failed", model=self.model, error=str(e))
            output.error_message = str(e)
            output.stop_reason = "error"
            stream.push(ErrorEvent(stop_reason="error", message=output))
            stream.end(output)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
