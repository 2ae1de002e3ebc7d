"""Voice adapter protocol and errors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


class VoiceError(Exception):
    """Base error for voice transcoding failures."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class TranscriptionError(VoiceError):
    """Audio could not be transcribed. Fatal for the request."""


class SynthesisError(VoiceError):
    """Text could not be synthesized into speech."""


@dataclass(slots=True, frozen=True)
class VoiceOptions:
    """Speech synthesis options."""

    voice: str = "alloy"
    speed: float = 1.0


@runtime_checkable
class VoiceAdapter(Protocol):
    """Speech-to-text and text-to-speech behind two operations."""

    @property
    def output_format(self) -> str:
        """MIME type of the audio returned by synthesize()."""
        ...

    async def transcribe(self, audio: bytes, audio_format: str = "webm") -> str:
        """Transcribe audio into text.

        Raises:
            TranscriptionError: on malformed or unsupported audio
        """
        ...

    async def synthesize(self, text: str, options: VoiceOptions | None = None) -> bytes:
        """Synthesize text into audio bytes.

        Raises:
            SynthesisError: if the provider fails
        """
        ...

    async def close(self) -> None:
        """Close any open connections."""
        ...
