"""Compose drafts and the ``emailDraft`` state that actions write into."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any
from uuid import uuid4

if TYPE_CHECKING:
    from smail.client.state import StateContainer

EMAIL_DRAFT_KEY = "emailDraft"
DRAFT_REPLY_SETTER = "draftReply"


@dataclass(slots=True, frozen=True)
class ComposeDraft:
    """An email being composed."""

    id: str = field(default_factory=lambda: uuid4().hex[:12])
    subject: str | None = None
    body: str | None = None
    to: tuple[str, ...] = ()


def draft_reply(current: Any, body: Any = "", subject: Any = None, *_: Any) -> dict[str, Any]:
    """Replace the draft body, and the subject when one is given."""
    value = dict(current or {})
    value["body"] = "" if body is None else str(body)
    if subject is not None:
        value["subject"] = str(subject)
    return value


class DraftStore:
    """Open compose drafts, one of which is active."""

    __slots__ = ("_drafts", "_active_id")

    def __init__(self) -> None:
        self._drafts: dict[str, ComposeDraft] = {}
        self._active_id: str | None = None

    def open(self, draft: ComposeDraft | None = None) -> ComposeDraft:
        """Add a draft and make it active."""
        draft = draft or ComposeDraft()
        self._drafts[draft.id] = draft
        self._active_id = draft.id
        return draft

    def get(self, draft_id: str) -> ComposeDraft | None:
        return self._drafts.get(draft_id)

    def get_active_draft(self) -> ComposeDraft | None:
        if self._active_id is None:
            return None
        return self._drafts.get(self._active_id)

    def update_active(self, *, subject: str | None = None, body: str | None = None) -> None:
        """Replace body/subject of the active draft, opening one if needed."""
        draft = self.get_active_draft() or self.open()
        changes: dict[str, Any] = {}
        if subject is not None:
            changes["subject"] = subject
        if body is not None:
            changes["body"] = body
        self._drafts[draft.id] = replace(draft, **changes)


def register_email_draft(state: StateContainer, drafts: DraftStore) -> None:
    """Register ``emailDraft`` with its ``draftReply`` setter, synced to ``drafts``."""
    active = drafts.get_active_draft()
    initial = {"subject": active.subject, "body": active.body} if active else {}
    state.register(EMAIL_DRAFT_KEY, initial, {DRAFT_REPLY_SETTER: draft_reply})

    def sync(_key: str, value: Any) -> None:
        if isinstance(value, dict):
            drafts.update_active(subject=value.get("subject"), body=value.get("body"))

    state.subscribe(EMAIL_DRAFT_KEY, sync)
