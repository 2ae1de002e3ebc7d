"""OpenAI voice adapter tests using MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from smail.llm.retry import RetryConfig
from smail.voice import VoiceAdapter
from smail.voice.base import SynthesisError, TranscriptionError, VoiceOptions
from smail.voice.openai import OpenAIVoice


def _voice(handler, **kwargs) -> OpenAIVoice:
    client = httpx.AsyncClient(
        base_url="https://example.com", transport=httpx.MockTransport(handler)
    )
    return OpenAIVoice(
        api_key="sk-test",
        base_url="https://example.com",
        retry=RetryConfig(max_retries=0),
        http_client=client,
        **kwargs,
    )


def test_openai_voice_satisfies_adapter_protocol():
    assert isinstance(OpenAIVoice(api_key="sk-test"), VoiceAdapter)


@pytest.mark.asyncio
async def test_transcribe_posts_multipart_audio():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["content_type"] = request.headers["content-type"]
        captured["body"] = request.content
        return httpx.Response(200, json={"text": "Reply to Avery"})

    voice = _voice(handler, listening_model="whisper-1")
    text = await voice.transcribe(b"RIFFDATA", "webm")
    await voice.close()

    assert text == "Reply to Avery"
    assert captured["path"] == "/v1/audio/transcriptions"
    assert str(captured["content_type"]).startswith("multipart/form-data")
    body = captured["body"]
    assert isinstance(body, bytes)
    assert b"whisper-1" in body
    assert b'filename="audio.webm"' in body
    assert b"RIFFDATA" in body


@pytest.mark.asyncio
async def test_transcribe_rejects_empty_audio_without_a_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    voice = _voice(handler)

    with pytest.raises(TranscriptionError):
        await voice.transcribe(b"")


@pytest.mark.asyncio
async def test_transcribe_maps_api_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"message": "Invalid file format"}})

    voice = _voice(handler)

    with pytest.raises(TranscriptionError) as excinfo:
        await voice.transcribe(b"garbage", "webm")

    assert excinfo.value.status_code == 400
    assert "Invalid file format" in str(excinfo.value)


@pytest.mark.asyncio
async def test_transcribe_maps_non_json_success_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    voice = _voice(handler)

    with pytest.raises(TranscriptionError, match="not JSON"):
        await voice.transcribe(b"RIFFDATA", "webm")
    await voice.close()


@pytest.mark.asyncio
async def test_synthesize_sends_voice_options_and_returns_bytes():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["json"] = json.loads(request.content)
        return httpx.Response(200, content=b"ID3audio")

    voice = _voice(handler, speech_model="tts-1", audio_format="audio/opus")
    audio = await voice.synthesize("Let me check", VoiceOptions(voice="nova", speed=1.25))
    await voice.close()

    assert audio == b"ID3audio"
    assert voice.output_format == "audio/opus"
    assert captured["path"] == "/v1/audio/speech"
    assert captured["json"] == {
        "model": "tts-1",
        "input": "Let me check",
        "voice": "nova",
        "speed": 1.25,
        "response_format": "opus",
    }


@pytest.mark.asyncio
async def test_synthesize_maps_api_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "bad key"}})

    voice = _voice(handler)

    with pytest.raises(SynthesisError, match="bad key"):
        await voice.synthesize("hello")
