"""Behavior tests for stream event serialisation and parsing."""

from __future__ import annotations

import json

import pytest

from smail.protocol.events import (
    EVENT_TYPES,
    Action,
    AudioEvent,
    ErrorEvent,
    ProgressUpdate,
    ProtocolError,
    TextDelta,
    ToolCall,
    ToolResult,
    Transcription,
    parse_event,
    serialize_event,
)


def test_tool_call_serialises_with_camel_case_keys():
    event = ToolCall(tool_call_id="call_1", tool_name="check-calendar", args={})

    data = json.loads(serialize_event(event))

    assert data == {
        "type": "tool-call",
        "toolCallId": "call_1",
        "toolName": "check-calendar",
        "args": {},
    }


def test_serialised_event_is_a_single_line():
    event = TextDelta(text="line one\nline two")

    line = serialize_event(event)

    assert "\n" not in line
    assert parse_event(line) == event


def test_action_without_content_omits_the_key():
    event = Action(state_key="emailDraft", setter_key="draftReply", args=["Hi"])

    data = json.loads(serialize_event(event))

    assert data == {
        "type": "action",
        "stateKey": "emailDraft",
        "setterKey": "draftReply",
        "args": ["Hi"],
    }


def test_transcription_uses_transcription_key():
    data = json.loads(serialize_event(Transcription(text="hello there")))

    assert data == {"type": "transcription", "transcription": "hello there"}
    assert parse_event(data) == Transcription(text="hello there")


def test_audio_is_base64_on_the_wire():
    event = AudioEvent(audio_data=b"\x00\x01mp3", content="Let me check")

    data = json.loads(serialize_event(event))

    assert data["audioData"] == "AAFtcDM="
    assert data["audioFormat"] == "audio/mpeg"
    parsed = parse_event(data)
    assert isinstance(parsed, AudioEvent)
    assert parsed.audio_data == b"\x00\x01mp3"


def test_audio_rejects_non_base64_payload():
    with pytest.raises(ProtocolError):
        parse_event({"type": "audio", "audioData": "not base64!!"})


@pytest.mark.parametrize(
    "event",
    [
        TextDelta(text="Hi"),
        ToolResult(tool_call_id="c1", tool_name="search-person", result={"name": "Avery Chen"}),
        ProgressUpdate(state="complete", text="Generated email"),
        ErrorEvent(message="boom"),
    ],
)
def test_parse_recovers_every_kind(event):
    assert parse_event(serialize_event(event)) == event


def test_unknown_type_is_rejected():
    with pytest.raises(ProtocolError, match="Unknown event type"):
        parse_event({"type": "thinking", "text": "hmm"})


def test_missing_type_is_rejected():
    with pytest.raises(ProtocolError):
        parse_event({"text": "hi"})


def test_unexpected_fields_are_rejected():
    with pytest.raises(ProtocolError, match="Invalid text-delta"):
        parse_event({"type": "text-delta", "text": "hi", "extra": 1})


def test_invalid_progress_state_is_rejected():
    with pytest.raises(ProtocolError):
        parse_event({"type": "progress_update", "state": "paused", "text": ""})


def test_non_json_and_non_object_payloads_are_rejected():
    with pytest.raises(ProtocolError, match="not JSON"):
        parse_event("{oops")
    with pytest.raises(ProtocolError, match="must be an object"):
        parse_event("[1, 2]")


def test_event_types_cover_the_closed_union():
    assert EVENT_TYPES == {
        "text-delta",
        "tool-call",
        "tool-result",
        "action",
        "progress_update",
        "transcription",
        "audio",
        "error",
    }
