"""Behavior tests for the lazy, single-pass agent stream."""

from __future__ import annotations

import pytest

from smail.core.agent import Agent, AgentError
from smail.core.message import Message
from tests.test_doubles.llm_provider_fake import LLMProviderFake
from tests.test_doubles.llm_stream_builders import make_error_events, make_text_events, usage


def text_agent(*scripts) -> tuple[Agent, LLMProviderFake]:
    fake = LLMProviderFake(list(scripts))
    return Agent("stream-test", "instructions", fake), fake


@pytest.mark.asyncio
async def test_nothing_is_requested_until_iterated():
    agent, fake = text_agent(make_text_events("hello"))

    stream = agent.stream([Message.user("hi")])

    assert fake.stream_calls == []
    assert not stream.exhausted
    await stream.aclose()


@pytest.mark.asyncio
async def test_text_and_usage_resolve_after_exhaustion():
    agent, _ = text_agent(
        make_text_events("Hello world", deltas=["Hello", " world"], usage=usage(7, 2))
    )

    stream = agent.stream([Message.user("hi")])
    deltas = [chunk.payload async for chunk in stream]

    assert deltas == ["Hello", " world"]
    assert stream.exhausted
    assert await stream.text() == "Hello world"
    assert (await stream.usage()).total_tokens == 9


@pytest.mark.asyncio
async def test_text_before_iteration_drains_the_stream():
    agent, fake = text_agent(make_text_events("drained"))

    stream = agent.stream([Message.user("hi")])

    assert await stream.text() == "drained"
    assert len(fake.stream_calls) == 1


@pytest.mark.asyncio
async def test_second_iteration_is_rejected():
    agent, _ = text_agent(make_text_events("once"))
    stream = agent.stream([Message.user("hi")])

    async for _ in stream:
        pass

    with pytest.raises(RuntimeError, match="only be iterated once"):
        stream.__aiter__()


@pytest.mark.asyncio
async def test_text_on_partially_consumed_stream_is_an_error():
    agent, _ = text_agent(make_text_events("abc", deltas=["a", "b", "c"]))
    stream = agent.stream([Message.user("hi")])

    async for _ in stream:
        break

    with pytest.raises(RuntimeError, match="not been fully consumed"):
        await stream.text()
    await stream.aclose()


@pytest.mark.asyncio
async def test_streaming_failure_is_reraised_by_text():
    agent, _ = text_agent(make_error_events("upstream 500"))
    stream = agent.stream([Message.user("hi")])

    with pytest.raises(AgentError):
        async for _ in stream:
            pass

    with pytest.raises(AgentError, match="upstream 500"):
        await stream.usage()
