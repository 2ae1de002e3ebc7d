"""Voice transcoding: speech-to-text and text-to-speech adapters."""

from smail.voice.base import (
    SynthesisError,
    TranscriptionError,
    VoiceAdapter,
    VoiceError,
    VoiceOptions,
)
from smail.voice.openai import OpenAIVoice

__all__ = [
    "OpenAIVoice",
    "SynthesisError",
    "TranscriptionError",
    "VoiceAdapter",
    "VoiceError",
    "VoiceOptions",
]
