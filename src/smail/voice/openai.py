"""OpenAI speech provider (whisper transcription + TTS) over httpx."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

from smail.llm.openai_compat import parse_api_error
from smail.llm.retry import RetryConfig, with_retry
from smail.voice.base import SynthesisError, TranscriptionError, VoiceOptions

# Response formats accepted by the speech endpoint, keyed by MIME type
_SPEECH_FORMATS = {
    "audio/mpeg": "mp3",
    "audio/opus": "opus",
    "audio/aac": "aac",
    "audio/flac": "flac",
    "audio/wav": "wav",
}


@dataclass(slots=True)
class OpenAIVoice:
    """Voice adapter backed by the OpenAI audio endpoints."""

    api_key: str
    base_url: str = "https://api.openai.com"
    speech_model: str = "tts-1"
    listening_model: str = "whisper-1"
    audio_format: str = "audio/mpeg"
    retry: RetryConfig = field(default_factory=RetryConfig)
    http_client: httpx.AsyncClient | None = field(default=None, repr=False)

    @property
    def output_format(self) -> str:
        return self.audio_format

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self.http_client is None:
            self.http_client = httpx.AsyncClient(
                base_url=self.base_url.rstrip("/"),
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=httpx.Timeout(60.0, connect=10.0),
            )
        return self.http_client

    async def transcribe(self, audio: bytes, audio_format: str = "webm") -> str:
        """Transcribe audio with the listening model."""
        if not audio:
            raise TranscriptionError("No audio provided")

        async def _request() -> str:
            response = await self.client.post(
                "/v1/audio/transcriptions",
                data={"model": self.listening_model},
                files={"file": (f"audio.{audio_format}", audio, f"audio/{audio_format}")},
            )
            if response.status_code >= 400:
                raise TranscriptionError(parse_api_error(response), response.status_code)
            try:
                data = response.json()
            except ValueError as e:
                raise TranscriptionError(f"Transcription response is not JSON: {e}") from e
            if not isinstance(data, dict):
                raise TranscriptionError("Transcription response is not a JSON object")
            return str(data.get("text", ""))

        try:
            return await with_retry(_request, self.retry)
        except httpx.HTTPError as e:
            raise TranscriptionError(f"Transcription request failed: {e}") from e

    async def synthesize(self, text: str, options: VoiceOptions | None = None) -> bytes:
        """Synthesize speech with the speech model."""
        opts = options or VoiceOptions()
        payload = {
            "model": self.speech_model,
            "input": text,
            "voice": opts.voice,
            "speed": opts.speed,
            "response_format": _SPEECH_FORMATS.get(self.audio_format, "mp3"),
        }

        async def _request() -> bytes:
            response = await self.client.post("/v1/audio/speech", json=payload)
            if response.status_code >= 400:
                raise SynthesisError(parse_api_error(response), response.status_code)
            return response.content

        try:
            return await with_retry(_request, self.retry)
        except httpx.HTTPError as e:
            raise SynthesisError(f"Speech request failed: {e}") from e

    async def close(self) -> None:
        """Close the HTTP client."""
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
