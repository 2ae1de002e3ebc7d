"""Request and response bodies of the HTTP API (camelCase on the wire)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SpellEmailContext(_Body):
    """Details of the email a spell responds to."""

    recipient_name: str | None = None
    recipient_email: str | None = None
    original_email: str | None = None
    original_subject: str | None = None


class ChatRequest(_Body):
    prompt: str
    temperature: float | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    system_prompt: str | None = None
    resource_id: str | None = None
    thread_id: str | None = None
    additional_context: Any = None
    context: SpellEmailContext | None = None


class CurrentDraft(_Body):
    subject: str | None = None
    body: str | None = None


class RangeContext(_Body):
    min: int
    max: int
    range_name: str | None = None


class RewriteDraftRequest(ChatRequest):
    word_count: int = Field(gt=0)
    current_draft: CurrentDraft = Field(default_factory=CurrentDraft)
    range_context: RangeContext | None = None


class UsageModel(_Body):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(_Body):
    content: str
    usage: UsageModel | None = None
    object: Any = None


class VoiceResponse(_Body):
    transcription: str
    text: str
    usage: UsageModel | None = None
    object: Any = None
    audio_data: str
    audio_format: str


class ErrorResponse(BaseModel):
    error: str
