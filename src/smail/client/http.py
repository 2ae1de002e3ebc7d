"""HTTP client for the assistant API that feeds streams into a reducer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from smail.client.reducer import MessageReducer

if TYPE_CHECKING:
    from smail.client.state import StateContainer

SPELL_ROUTES = {
    "schedule-meeting": "/chat/schedule-meeting/stream",
    "polite-rejection": "/chat/polite-rejection/stream",
    "follow-up": "/chat/follow-up/stream",
    "thank-you": "/chat/thank-you/stream",
}

REWRITE_DRAFT_ROUTE = "/chat/rewrite-draft/stream"


class AssistantAPIError(Exception):
    """Non-2xx response from the assistant API."""

    def __init__(self, message: str, status_code: int):
        self.message = message
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and "error" in data:
        return str(data["error"])
    return response.text


def chat_body(prompt: str, **options: Any) -> dict[str, Any]:
    """Request body with camelCase keys; None values are left out."""
    keys = {
        "temperature": "temperature",
        "max_tokens": "maxTokens",
        "system_prompt": "systemPrompt",
        "resource_id": "resourceId",
        "thread_id": "threadId",
        "additional_context": "additionalContext",
        "context": "context",
    }
    body: dict[str, Any] = {"prompt": prompt}
    for name, value in options.items():
        if value is not None:
            body[keys.get(name, name)] = value
    return body


@dataclass(slots=True)
class AssistantClient:
    """Async client for the chat, voice and spell routes."""

    base_url: str = "http://127.0.0.1:4112"
    state: StateContainer | None = None
    timeout: float = 120.0
    http_client: httpx.AsyncClient | None = field(default=None, repr=False)

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self.http_client is None:
            self.http_client = httpx.AsyncClient(
                base_url=self.base_url.rstrip("/"),
                timeout=httpx.Timeout(self.timeout, connect=10.0),
            )
        return self.http_client

    def new_reducer(self) -> MessageReducer:
        return MessageReducer(self.state)

    async def chat(self, prompt: str, **options: Any) -> dict[str, Any]:
        """POST /chat and return ``{content, usage}``."""
        response = await self.client.post("/chat", json=chat_body(prompt, **options))
        return self._json(response)

    async def stream_chat(
        self,
        prompt: str,
        reducer: MessageReducer | None = None,
        **options: Any,
    ) -> MessageReducer:
        """POST /chat/stream, applying every event to ``reducer``."""
        return await self._stream(
            "POST", "/chat/stream", reducer, json=chat_body(prompt, **options)
        )

    async def voice(
        self,
        audio: bytes,
        context: Any = None,
        filename: str = "audio.webm",
    ) -> dict[str, Any]:
        """POST /voice with an audio file."""
        response = await self.client.post("/voice", **self._voice_form(audio, context, filename))
        return self._json(response)

    async def voice_stream(
        self,
        audio: bytes,
        context: Any = None,
        reducer: MessageReducer | None = None,
        filename: str = "audio.webm",
    ) -> MessageReducer:
        """POST /voice/stream; the transcript starts with the transcription."""
        return await self._stream(
            "POST", "/voice/stream", reducer, **self._voice_form(audio, context, filename)
        )

    async def spell(
        self,
        name: str,
        prompt: str,
        reducer: MessageReducer | None = None,
        **options: Any,
    ) -> MessageReducer:
        """Invoke one of the canned spell routes by name.

        The rewrite spell needs a word count and draft; use ``rewrite_draft``.
        """
        route = SPELL_ROUTES.get(name)
        if route is None:
            raise ValueError(f"Unknown spell: {name}")
        return await self._stream(
            "POST",
            route,
            reducer,
            require_complete=False,
            json=chat_body(prompt, **options),
        )

    async def rewrite_draft(
        self,
        prompt: str,
        word_count: int,
        current_draft: dict[str, Any],
        range_context: dict[str, Any] | None = None,
        reducer: MessageReducer | None = None,
        **options: Any,
    ) -> MessageReducer:
        body = chat_body(prompt, **options)
        body["wordCount"] = word_count
        body["currentDraft"] = current_draft
        if range_context is not None:
            body["rangeContext"] = range_context
        return await self._stream("POST", REWRITE_DRAFT_ROUTE, reducer, json=body)

    async def _stream(
        self,
        method: str,
        url: str,
        reducer: MessageReducer | None,
        *,
        require_complete: bool = True,
        **kwargs: Any,
    ) -> MessageReducer:
        reducer = reducer or self.new_reducer()
        async with self.client.stream(method, url, **kwargs) as response:
            if response.status_code >= 400:
                await response.aread()
                raise AssistantAPIError(_error_message(response), response.status_code)
            async for text in response.aiter_text():
                reducer.feed(text)
        reducer.finish(require_complete=require_complete)
        return reducer

    @staticmethod
    def _voice_form(audio: bytes, context: Any, filename: str) -> dict[str, Any]:
        form: dict[str, Any] = {"files": {"audio": (filename, audio, "audio/webm")}}
        if context is not None:
            form["data"] = {
                "context": context if isinstance(context, str) else json.dumps(context)
            }
        return form

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        if response.status_code >= 400:
            raise AssistantAPIError(_error_message(response), response.status_code)
        return response.json()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
