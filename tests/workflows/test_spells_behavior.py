"""Behavior tests for canned spells, word-count buckets and the rewrite spell."""

from __future__ import annotations

import json

import pytest

from smail.agents.rewrite_agent import create_rewrite_agent
from smail.core.agent import StructuredOutputError
from smail.protocol.events import Action, ProgressUpdate
from smail.workflows.spells import (
    CANNED_SPELLS,
    FOLLOW_UP,
    POLITE_REJECTION,
    REWRITE_ACTION_TEXT,
    REWRITE_PROGRESS_TEXT,
    SCHEDULE_MEETING,
    THANK_YOU,
    Draft,
    EmailContext,
    WordCountBucket,
    WordRange,
    build_rewrite_prompt,
    rewrite_draft,
    run_canned_spell,
    select_bucket,
)
from tests.test_doubles.llm_provider_fake import LLMProviderFake
from tests.test_doubles.llm_stream_builders import make_text_events
from tests.test_doubles.sse_capture import drain_events

LONG_DRAFT = " ".join(["word"] * 200)


def test_canned_spells_are_registered_by_route_name():
    assert set(CANNED_SPELLS) == {"schedule-meeting", "polite-rejection", "follow-up", "thank-you"}


def test_schedule_meeting_defaults_recipient_and_has_no_subject():
    action = SCHEDULE_MEETING.render()

    assert action.state_key == "emailDraft"
    assert action.setter_key == "draftReply"
    assert len(action.args) == 1
    assert action.args[0].startswith("Hi Avery,")
    assert action.content.startswith("I'll help you schedule a meeting")


def test_context_fills_recipient_and_subject():
    context = EmailContext(recipient_name="Jordan", original_subject="Q3 planning")

    follow_up = FOLLOW_UP.render(context)
    rejection = POLITE_REJECTION.render(context)

    assert follow_up.args[0].startswith("Dear Jordan,")
    assert follow_up.args[1] == "Following Up - Q3 planning"
    assert rejection.args == [rejection.args[0], "Re: Your Request"]
    assert rejection.args[0].startswith("Dear Jordan,")


def test_missing_context_keeps_placeholders():
    follow_up = FOLLOW_UP.render()
    thank_you = THANK_YOU.render(EmailContext())

    assert follow_up.args[0].startswith("Dear [Recipient Name],")
    assert follow_up.args[1] == "Following Up - [Original Subject]"
    assert thank_you.args[0].startswith("Dear Avery Chen,")
    assert thank_you.args[1] == "Thank You"


@pytest.mark.asyncio
async def test_canned_spell_emits_exactly_one_action(channel):
    action = await run_canned_spell(channel, POLITE_REJECTION, delay=0)

    events = await drain_events(channel)
    assert events == [action]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (5, "Brief"),
        (10, "Brief"),
        (25, "Brief"),
        (26, "Short"),
        (50, "Short"),
        (100, "Medium"),
        (150, "Long"),
        (200, "Long"),
        (500, "Article"),
        (1000, "Essay"),
    ],
)
def test_select_bucket_prefers_the_lower_range_at_shared_endpoints(value, expected):
    assert select_bucket(value).name == expected


@pytest.mark.parametrize("value", [0, 4, 1001])
def test_select_bucket_outside_the_table(value):
    assert select_bucket(value) is None


def test_select_bucket_ignores_input_order():
    buckets = [WordCountBucket("High", 50, 100), WordCountBucket("Low", 10, 50)]

    assert select_bucket(50, buckets).name == "Low"
    assert WordCountBucket("Low", 10, 50).label(12) == "Low (12 words)"


def test_word_range_around_falls_back_to_plus_minus_ten():
    assert WordRange.around(10) == WordRange(min=5, max=25, range_name="Brief")
    assert WordRange.around(2000) == WordRange(min=1990, max=2010)


def test_rewrite_prompt_mentions_target_range_and_draft():
    prompt = build_rewrite_prompt(
        "make it punchy", 10, Draft(subject="Sync", body="Long body"), None
    )

    assert "target of 10 words" in prompt
    assert "within the Brief range of 5-25 words" in prompt
    assert "Subject: Sync" in prompt
    assert "Body: Long body" in prompt
    assert "User's Request: make it punchy" in prompt


def test_rewrite_prompt_placeholders_for_empty_draft():
    prompt = build_rewrite_prompt("x", 60, Draft(), WordRange(min=40, max=80))

    assert "within the specified range of 40-80 words" in prompt
    assert "Subject: No subject" in prompt
    assert "Body: No content" in prompt


@pytest.mark.asyncio
async def test_rewrite_to_ten_words_emits_short_draft(channel):
    rewritten = "Hi Avery, can we meet Tuesday at nine? Thanks, Jesse."
    fake = LLMProviderFake([make_text_events(json.dumps({"rewrittenDraft": rewritten}))])
    agent = create_rewrite_agent(fake)

    action = await rewrite_draft(
        channel,
        agent,
        prompt="shorten",
        word_count=10,
        draft=Draft(subject="Meeting", body=LONG_DRAFT),
    )

    events = await drain_events(channel)
    assert events == [
        ProgressUpdate(state="in_progress", text=REWRITE_PROGRESS_TEXT),
        action,
        ProgressUpdate(state="complete", text=REWRITE_ACTION_TEXT),
    ]
    assert isinstance(action, Action)
    assert action.args == [rewritten, "Meeting"]
    assert abs(len(action.args[0].split()) - 10) <= 3

    options = fake.stream_calls[0]["options"]
    assert options.temperature == 0.7
    assert options.max_tokens == 1000
    assert "target of 10 words" in fake.stream_calls[0]["messages"][-1].content


@pytest.mark.asyncio
async def test_rewrite_without_subject_uses_default(channel):
    fake = LLMProviderFake([make_text_events('{"rewrittenDraft": "Short."}')])

    action = await rewrite_draft(
        channel,
        create_rewrite_agent(fake),
        prompt="shorten",
        word_count=5,
        draft=Draft(body="Some body"),
        temperature=0.2,
        max_tokens=50,
    )

    assert action.args == ["Short.", "Rewritten Email"]
    assert fake.stream_calls[0]["options"].temperature == 0.2
    assert fake.stream_calls[0]["options"].max_tokens == 50


@pytest.mark.asyncio
async def test_rewrite_with_invalid_model_output_raises(channel):
    fake = LLMProviderFake([make_text_events("I cannot do that")])

    with pytest.raises(StructuredOutputError):
        await rewrite_draft(
            channel,
            create_rewrite_agent(fake),
            prompt="shorten",
            word_count=10,
            draft=Draft(body=LONG_DRAFT),
        )
