"""Client side of the stream protocol."""

from smail.client.drafts import ComposeDraft, DraftStore, draft_reply, register_email_draft
from smail.client.http import AssistantAPIError, AssistantClient
from smail.client.reducer import ChatMessage, MessageReducer, MessageType, RunStatus
from smail.client.state import StateContainer, UnknownSetterError

__all__ = [
    "AssistantAPIError",
    "AssistantClient",
    "ChatMessage",
    "ComposeDraft",
    "DraftStore",
    "MessageReducer",
    "MessageType",
    "RunStatus",
    "StateContainer",
    "UnknownSetterError",
    "draft_reply",
    "register_email_draft",
]
