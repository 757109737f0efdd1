"""Unit tests for the ElevenLabs speech client (httpx MockTransport)."""

import json

import httpx
import pytest

from newsight.app.resilience import FailureClass
from newsight.clients.speech_client import SpeechClient, UnavailableSpeech
from newsight.errors import ValidationError
from newsight.routes.tts import AUTH_MESSAGE, RATE_LIMIT_MESSAGE, fallback_message

from fakes import RecordingSleeper

API_KEY = "sk_0123456789abcdef0123456789abcdef"


def _client(handler, sleeper=None):
    return SpeechClient(
        API_KEY,
        base_url="https://tts.test",
        voice_id="voice123",
        transport=httpx.MockTransport(handler),
        sleep=sleeper or RecordingSleeper(),
    )


class TestSpeechClient:
    @pytest.mark.asyncio
    async def test_request_shape(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"ID3audio")

        client = _client(handler)
        result = await client.synthesize("Welcome to NewSight!")
        await client.close()

        assert result.ok
        assert result.value == b"ID3audio"
        req = seen[0]
        assert req.method == "POST"
        assert req.url.path == "/v1/text-to-speech/voice123"
        assert req.headers["xi-api-key"] == API_KEY
        body = json.loads(req.content)
        assert body["text"] == "Welcome to NewSight!"
        assert body["model_id"] == "eleven_monolingual_v1"
        assert body["voice_settings"]["stability"] == 0.5

    @pytest.mark.asyncio
    async def test_voice_override(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"ID3audio")

        client = _client(handler)
        await client.synthesize("hi", voice_id="other")
        await client.close()
        assert seen[0].url.path == "/v1/text-to-speech/other"

    @pytest.mark.asyncio
    async def test_auth_failure_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401, json={"detail": {"message": "Invalid API key"}})

        client = _client(handler)
        result = await client.synthesize("hello")
        await client.close()

        assert result.failure == FailureClass.CLIENT_ERROR
        assert result.status_code == 401
        assert len(calls) == 1
        assert fallback_message(result) == AUTH_MESSAGE

    @pytest.mark.asyncio
    async def test_rate_limit_retried_then_fallback(self):
        sleeper = RecordingSleeper()
        client = _client(lambda request: httpx.Response(429), sleeper)
        result = await client.synthesize("hello")
        await client.close()

        assert result.is_fallback
        assert sleeper.delays == [1.0]
        assert fallback_message(result) == RATE_LIMIT_MESSAGE

    @pytest.mark.asyncio
    async def test_empty_audio_is_invalid_payload(self):
        client = _client(lambda request: httpx.Response(200, content=b""))
        result = await client.synthesize("hello")
        await client.close()
        assert result.failure == FailureClass.INVALID_PAYLOAD

    @pytest.mark.asyncio
    async def test_blank_text_rejected(self):
        client = _client(lambda request: httpx.Response(200, content=b"x"))
        with pytest.raises(ValidationError):
            await client.synthesize("")
        await client.close()


class TestUnavailableSpeech:
    @pytest.mark.asyncio
    async def test_reports_unavailable(self):
        speech = UnavailableSpeech()
        assert speech.available is False
        result = await speech.synthesize("hello")
        assert result.failure == FailureClass.UNAVAILABLE
