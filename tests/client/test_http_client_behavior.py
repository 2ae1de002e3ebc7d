"""Behavior tests for the assistant HTTP client against the real app."""

from __future__ import annotations

import json

import httpx
import pytest

from smail.api import Services, create_app
from smail.client.drafts import DraftStore, register_email_draft
from smail.client.http import AssistantAPIError, AssistantClient, chat_body
from smail.client.reducer import MessageType, RunStatus
from smail.client.state import StateContainer
from tests.test_doubles.llm_provider_fake import LLMProviderFake
from tests.test_doubles.llm_stream_builders import make_text_events, make_tool_call_events
from tests.test_doubles.voice_fake import VoiceFake


def assistant_client(config, scripts=(), voice=None, state=None) -> AssistantClient:
    services = Services.from_config(
        config,
        provider=LLMProviderFake(list(scripts)),
        rewrite_provider=LLMProviderFake(),
        voice=voice,
    )
    app = create_app(config, services)
    http_client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    return AssistantClient(base_url="http://test", state=state, http_client=http_client)


def test_chat_body_uses_camel_case_and_drops_none():
    body = chat_body("hi", max_tokens=10, system_prompt=None, thread_id="t1")

    assert body == {"prompt": "hi", "maxTokens": 10, "threadId": "t1"}


@pytest.mark.asyncio
async def test_chat_returns_json(config):
    client = assistant_client(config, [make_text_events("Hello")])

    data = await client.chat("Hi")
    await client.close()

    assert data["content"] == "Hello"


@pytest.mark.asyncio
async def test_stream_chat_drives_reducer_and_draft_state(config):
    state = StateContainer()
    drafts = DraftStore()
    drafts.open()
    register_email_draft(state, drafts)
    scripts = [
        make_tool_call_events("c1", "check-calendar", {}, preamble="Checking..."),
        make_tool_call_events("c2", "search-person", {"query": "Avery"}),
        make_tool_call_events("c3", "write-email", {"email": "Hi Avery, Tuesday?"}),
        make_text_events("Drafted your reply."),
    ]
    client = assistant_client(config, scripts, state=state)

    reducer = await client.stream_chat("Reply to Avery")
    await client.close()

    assert reducer.status is RunStatus.COMPLETE
    assert reducer.text == "Checking...Drafted your reply."
    assert sum(m.type is MessageType.TOOL_CALL for m in reducer.messages) == 3
    assert drafts.get_active_draft().body == "Hi Avery, Tuesday?"


@pytest.mark.asyncio
async def test_voice_stream_transcript_starts_with_user_turn(config):
    client = assistant_client(
        config, [make_text_events("On it.")], voice=VoiceFake(transcript="Reply please")
    )

    reducer = await client.voice_stream(b"abc", context={"currentEmailBeingViewed": []})
    await client.close()

    assert reducer.messages[0].type is MessageType.TRANSCRIPTION
    assert reducer.messages[0].content == "Reply please"
    assert reducer.messages[-1].type is MessageType.AUDIO
    assert reducer.status is RunStatus.COMPLETE


@pytest.mark.asyncio
async def test_spell_completes_without_progress_events(config):
    state = StateContainer()
    drafts = DraftStore()
    register_email_draft(state, drafts)
    client = assistant_client(config, state=state)

    reducer = await client.spell("thank-you", "thanks", context={"recipientName": "Sam"})
    await client.close()

    assert reducer.status is RunStatus.COMPLETE
    assert state.get("emailDraft")["subject"] == "Thank You"
    assert drafts.get_active_draft().body.startswith("Dear Sam,")


@pytest.mark.asyncio
async def test_unknown_spell_name_is_rejected_locally(config):
    client = assistant_client(config)

    with pytest.raises(ValueError, match="Unknown spell"):
        await client.spell("summon-dragon", "go")
    await client.close()


@pytest.mark.asyncio
async def test_http_errors_surface_with_the_error_message(config):
    client = assistant_client(config)

    with pytest.raises(AssistantAPIError) as excinfo:
        await client.voice(b"abc")
    await client.close()

    assert excinfo.value.status_code == 500
    assert "Voice is not configured" in excinfo.value.message


@pytest.mark.asyncio
async def test_rewrite_is_not_a_canned_spell(config):
    client = assistant_client(config)

    with pytest.raises(ValueError, match="Unknown spell"):
        await client.spell("rewrite-draft", "shorten")
    await client.close()


@pytest.mark.asyncio
async def test_rewrite_draft_sends_word_count_and_applies_the_result(config):
    state = StateContainer()
    drafts = DraftStore()
    register_email_draft(state, drafts)
    services = Services.from_config(
        config,
        provider=LLMProviderFake(),
        rewrite_provider=LLMProviderFake(
            [make_text_events(json.dumps({"rewrittenDraft": "Tuesday at nine?"}))]
        ),
    )
    http_client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=create_app(config, services)), base_url="http://test"
    )
    client = AssistantClient(base_url="http://test", state=state, http_client=http_client)

    reducer = await client.rewrite_draft(
        "shorten", 5, {"subject": "Meeting", "body": "A much longer draft body."}
    )
    await client.close()

    assert reducer.status is RunStatus.COMPLETE
    assert state.get("emailDraft") == {"body": "Tuesday at nine?", "subject": "Meeting"}
    assert drafts.get_active_draft().body == "Tuesday at nine?"
