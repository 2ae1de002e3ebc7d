"""OpenAI-compatible provider tests using MockTransport (behavioral)."""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest

from smail.core.message import Message
from smail.llm.events import StreamOptions, TextBlock, ToolCallBlock
from smail.llm.openai_compat import OpenAICompatibleProvider
from smail.llm.retry import RetryConfig

NO_RETRY = RetryConfig(max_retries=0)


def _sse_payload(events: list[dict[str, object]]) -> bytes:
    chunks = []
    for event in events:
        chunks.append(f"data: {json.dumps(event)}\n\n".encode())
    chunks.append(b"data: [DONE]\n\n")
    return b"".join(chunks)


def _provider(handler, **kwargs) -> OpenAICompatibleProvider:
    transport = httpx.MockTransport(handler)
    client = httpx.AsyncClient(base_url="https://example.com", transport=transport)
    return OpenAICompatibleProvider(
        base_url="https://example.com",
        api_key="sk-test",
        model="gpt-4o",
        http_client=client,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_payload_and_streams_text_and_tool_call() -> None:
    captured = SimpleNamespace(json=None, auth=None)
    events = [
        {"choices": [{"delta": {"content": "Let me check "}}]},
        {"choices": [{"delta": {"content": "your calendar."}}]},
        {
            "choices": [
                {
                    "delta": {
                        "tool_calls": [
                            {
                                "index": 0,
                                "id": "call_1",
                                "function": {"name": "search-person", "arguments": '{"que'},
                            }
                        ]
                    }
                }
            ]
        },
        {
            "choices": [
                {
                    "delta": {
                        "tool_calls": [{"index": 0, "function": {"arguments": 'ry":"Avery"}'}}]
                    }
                }
            ]
        },
        {
            "choices": [{"delta": {}, "finish_reason": "tool_calls"}],
            "usage": {"prompt_tokens": 12, "completion_tokens": 5},
        },
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        captured.json = json.loads(request.content.decode("utf-8"))
        captured.auth = request.headers.get("authorization")
        assert request.url.path == "/v1/chat/completions"
        return httpx.Response(200, content=_sse_payload(events))

    provider = _provider(handler)
    tools = [
        {
            "type": "function",
            "function": {
                "name": "search-person",
                "description": "Look up a person",
                "parameters": {"type": "object"},
            },
        }
    ]

    stream = provider.stream(
        [Message.system("be brief"), Message.user("hi")],
        tools=tools,
        options=StreamOptions(temperature=0.2, max_tokens=256),
    )
    seen = [event.type async for event in stream]
    result = await stream.result()
    await provider.close()

    assert captured.json["model"] == "gpt-4o"
    assert captured.json["stream"] is True
    assert captured.json["stream_options"] == {"include_usage": True}
    assert captured.json["temperature"] == 0.2
    assert captured.json["max_tokens"] == 256
    assert captured.json["tool_choice"] == "auto"
    assert captured.json["messages"][0] == {"role": "system", "content": "be brief"}

    assert seen.count("text_delta") == 2
    assert seen.index("toolcall_end") > seen.index("text_end")
    assert seen[-1] == "done"

    text = next(block for block in result.content if isinstance(block, TextBlock))
    tool = next(block for block in result.content if isinstance(block, ToolCallBlock))
    assert text.text == "Let me check your calendar."
    assert tool.id == "call_1"
    assert tool.arguments == {"query": "Avery"}
    assert result.stop_reason == "tool_use"
    assert result.usage.total_tokens == 17


@pytest.mark.asyncio
async def test_response_format_is_forwarded() -> None:
    captured = SimpleNamespace(json=None)
    response_format = {"type": "json_schema", "json_schema": {"name": "X", "schema": {}}}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.json = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, content=_sse_payload([]))

    provider = _provider(handler)
    stream = provider.stream(
        [Message.user("hi")], options=StreamOptions(response_format=response_format)
    )
    await stream.result()
    await provider.close()

    assert captured.json["response_format"] == response_format
    assert "tools" not in captured.json


@pytest.mark.asyncio
async def test_invalid_tool_arguments_become_empty_dict() -> None:
    events = [
        {
            "choices": [
                {
                    "delta": {
                        "tool_calls": [
                            {
                                "index": 0,
                                "id": "call_9",
                                "function": {"name": "write-email", "arguments": "{not json"},
                            }
                        ]
                    }
                }
            ]
        },
    ]

    provider = _provider(lambda request: httpx.Response(200, content=_sse_payload(events)))
    stream = provider.stream([Message.user("hi")])
    result = await stream.result()
    await provider.close()

    tool = next(block for block in result.content if isinstance(block, ToolCallBlock))
    assert tool.arguments == {}


@pytest.mark.asyncio
async def test_streams_error_on_non_2xx_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"message": "bad request"}})

    provider = _provider(handler)
    stream = provider.stream([Message.user("hi")])
    result = await stream.result()
    await provider.close()

    assert result.stop_reason == "error"
    assert result.error_message == "bad request"


@pytest.mark.asyncio
async def test_retries_on_transient_error() -> None:
    calls = {"count": 0}
    events = [
        {"choices": [{"delta": {"content": "Hi"}}]},
        {
            "choices": [{"delta": {}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 1, "completion_tokens": 1},
        },
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            return httpx.Response(503, json={"error": {"message": "overloaded"}})
        return httpx.Response(200, content=_sse_payload(events))

    provider = _provider(
        handler, retry=RetryConfig(max_retries=2, initial_delay=0.0, jitter=False)
    )
    stream = provider.stream([Message.user("hi")])
    result = await stream.result()
    await provider.close()

    assert calls["count"] == 2
    assert result.stop_reason == "stop"
    text = next(block for block in result.content if isinstance(block, TextBlock))
    assert text.text == "Hi"


@pytest.mark.asyncio
async def test_cancel_event_aborts_before_request() -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(200, content=_sse_payload([]))

    cancel = asyncio.Event()
    cancel.set()
    provider = _provider(handler, retry=NO_RETRY)
    stream = provider.stream([Message.user("hi")], options=StreamOptions(cancel_event=cancel))
    result = await stream.result()
    await provider.close()

    assert calls["count"] == 0
    assert result.stop_reason == "aborted"
