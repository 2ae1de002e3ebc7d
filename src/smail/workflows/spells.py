"""Spells: fixed, UI-triggered flows that emit a single draft action.

Four spells fill a canned draft from the optional email context. The
rewrite spell asks the rewrite agent to fit the current draft to a word
count picked from a slider whose stops are the word-count buckets below.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from smail.agents.rewrite_agent import RewriteOutput
from smail.core.agent import AgentOptions
from smail.core.message import Message
from smail.protocol.events import Action, ProgressUpdate
from smail.workflows.multiplexer import DRAFT_SETTER_KEY, DRAFT_STATE_KEY

if TYPE_CHECKING:
    from collections.abc import Sequence

    from smail.core.agent import Agent
    from smail.transport import SSEChannel


@dataclass(slots=True, frozen=True)
class EmailContext:
    """Details of the email a spell responds to; every field is optional."""

    recipient_name: str | None = None
    recipient_email: str | None = None
    original_email: str | None = None
    original_subject: str | None = None


@dataclass(slots=True, frozen=True)
class CannedSpell:
    """A draft template and the narration shown while it is applied."""

    name: str
    narration: str
    body: str
    subject: str | None = None
    default_recipient: str = "[Recipient Name]"

    def render(self, context: EmailContext | None = None) -> Action:
        """Fill the template; missing context keeps the placeholder text."""
        ctx = context or EmailContext()
        fields = {
            "recipient": ctx.recipient_name or self.default_recipient,
            "subject": ctx.original_subject or "[Original Subject]",
        }
        args = [self.body.format(**fields)]
        if self.subject is not None:
            args.append(self.subject.format(**fields))
        return Action(
            state_key=DRAFT_STATE_KEY,
            setter_key=DRAFT_SETTER_KEY,
            args=args,
            content=self.narration,
        )


SCHEDULE_MEETING = CannedSpell(
    name="schedule-meeting",
    narration="I'll help you schedule a meeting. Let me draft a professional email...",
    default_recipient="Avery",
    body=(
        "Hi {recipient},\n"
        "\n"
        "Thank you for reaching out. I'm glad to hear about the progress on the frontend "
        "components and I'm eager to discuss the user authentication flow and data "
        "persistence.\n"
        "\n"
        "Here are a few time slots I have available this week:\n"
        "- Tuesday, August 18th at 9:00 AM\n"
        "- Tuesday, August 18th at 11:00 AM\n"
        "- Wednesday, August 19th at 10:00 AM\n"
        "\n"
        "Please let me know if any of these times work for you, or feel free to suggest "
        "another time that suits your schedule better. I'm open to either a video call or "
        "an in-person meeting, as you prefer.\n"
        "\n"
        "Looking forward to our discussion.\n"
        "\n"
        "Best regards,\n"
        "\n"
        "Jesse Li"
    ),
)

POLITE_REJECTION = CannedSpell(
    name="polite-rejection",
    narration="I'll help you craft a polite rejection email...",
    default_recipient="Avery Chen",
    body=(
        "Dear {recipient},\n"
        "\n"
        "Thank you for reaching out and for your interest. After careful consideration, "
        "I regret to inform you that I won't be able to proceed with this opportunity at "
        "this time.\n"
        "\n"
        "I appreciate your understanding and wish you the best with your endeavors.\n"
        "\n"
        "Best regards,\n"
        "Jesse"
    ),
    subject="Re: Your Request",
)

FOLLOW_UP = CannedSpell(
    name="follow-up",
    narration="I'll help you create a follow-up email...",
    body=(
        "Dear {recipient},\n"
        "\n"
        "I hope you're doing well. I wanted to follow up on our previous conversation "
        "regarding [topic].\n"
        "\n"
        "I understand you may be busy, but I wanted to check if you had a chance to "
        "consider my previous message. Please let me know if you need any additional "
        "information.\n"
        "\n"
        "Looking forward to hearing from you.\n"
        "\n"
        "Best regards,\n"
        "[Your Name]"
    ),
    subject="Following Up - {subject}",
)

THANK_YOU = CannedSpell(
    name="thank-you",
    narration="I'll help you create a thank you email...",
    default_recipient="Avery Chen",
    body=(
        "Dear {recipient},\n"
        "\n"
        "I wanted to take a moment to express my sincere gratitude for your assistance "
        "and support. Your assistance and support have been invaluable.\n"
        "\n"
        "Thank you once again for your time and consideration.\n"
        "\n"
        "With appreciation,\n"
        "Jesse"
    ),
    subject="Thank You",
)

CANNED_SPELLS: dict[str, CannedSpell] = {
    spell.name: spell for spell in (SCHEDULE_MEETING, POLITE_REJECTION, FOLLOW_UP, THANK_YOU)
}


async def run_canned_spell(
    channel: SSEChannel,
    spell: CannedSpell,
    context: EmailContext | None = None,
    delay: float = 0.1,
) -> Action:
    """Emit the spell's action, then wait ``delay`` seconds before closing."""
    action = spell.render(context)
    channel.send(action)
    if delay > 0:
        await asyncio.sleep(delay)
    return action


# Word-count buckets


@dataclass(slots=True, frozen=True)
class WordCountBucket:
    name: str
    min: int
    max: int

    def contains(self, value: int) -> bool:
        return self.min <= value <= self.max

    def label(self, value: int) -> str:
        return f"{self.name} ({value} words)"


WORD_COUNT_BUCKETS: tuple[WordCountBucket, ...] = (
    WordCountBucket("Brief", 5, 25),
    WordCountBucket("Short", 25, 50),
    WordCountBucket("Medium", 50, 100),
    WordCountBucket("Long", 100, 200),
    WordCountBucket("Article", 200, 500),
    WordCountBucket("Essay", 500, 1000),
)


def select_bucket(
    value: int,
    buckets: Sequence[WordCountBucket] = WORD_COUNT_BUCKETS,
) -> WordCountBucket | None:
    """Bucket containing ``value`` (bounds inclusive).

    Where buckets share an endpoint the one with the lower range wins.
    Returns None when no bucket contains the value.
    """
    for bucket in sorted(buckets, key=lambda b: (b.min, b.max)):
        if bucket.contains(value):
            return bucket
    return None


# Rewrite spell

REWRITE_PROGRESS_TEXT = "Rewriting email draft..."
REWRITE_ACTION_TEXT = "Email rewritten"
REWRITE_DEFAULT_SUBJECT = "Rewritten Email"
REWRITE_TEMPERATURE = 0.7
REWRITE_MAX_TOKENS = 1000


@dataclass(slots=True, frozen=True)
class WordRange:
    min: int
    max: int
    range_name: str | None = None

    @classmethod
    def around(cls, word_count: int) -> WordRange:
        """Range from the bucket table, or ``word_count`` +/- 10 outside it."""
        bucket = select_bucket(word_count)
        if bucket is None:
            return cls(min=word_count - 10, max=word_count + 10)
        return cls(min=bucket.min, max=bucket.max, range_name=bucket.name)


@dataclass(slots=True, frozen=True)
class Draft:
    subject: str | None = None
    body: str | None = None


def build_rewrite_prompt(
    prompt: str,
    word_count: int,
    draft: Draft,
    word_range: WordRange | None = None,
) -> str:
    """Instruction sent to the rewrite agent."""
    rng = word_range or WordRange.around(word_count)
    return (
        f"Please rewrite the following email to match a target of {word_count} words "
        f"(within the {rng.range_name or 'specified'} range of {rng.min}-{rng.max} words).\n"
        "\n"
        "Current Email:\n"
        f"Subject: {draft.subject or 'No subject'}\n"
        f"Body: {draft.body or 'No content'}\n"
        "\n"
        f"User's Request: {prompt}\n"
        "\n"
        "Please rewrite this email maintaining its core message while fitting the target "
        "word count."
    )


async def rewrite_draft(
    channel: SSEChannel,
    agent: Agent,
    *,
    prompt: str,
    word_count: int,
    draft: Draft,
    word_range: WordRange | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> Action:
    """Run the rewrite agent and emit its draft as an action."""
    channel.send(ProgressUpdate(state="in_progress", text=REWRITE_PROGRESS_TEXT))

    result = await agent.generate(
        [Message.user(build_rewrite_prompt(prompt, word_count, draft, word_range))],
        AgentOptions(
            temperature=temperature if temperature is not None else REWRITE_TEMPERATURE,
            max_tokens=max_tokens or REWRITE_MAX_TOKENS,
        ),
        output=RewriteOutput,
    )
    rewritten: RewriteOutput = result.object

    action = Action(
        state_key=DRAFT_STATE_KEY,
        setter_key=DRAFT_SETTER_KEY,
        args=[rewritten.rewritten_draft, draft.subject or REWRITE_DEFAULT_SUBJECT],
        content=REWRITE_ACTION_TEXT,
    )
    channel.send(action)
    channel.send(ProgressUpdate(state="complete", text=REWRITE_ACTION_TEXT))
    return action
