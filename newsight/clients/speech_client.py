"""
NewSight - Speech Synthesis Client
HTTP client for the ElevenLabs text-to-speech API, wrapped in the resilience
layer.  Returns audio bytes on success and a fallback result otherwise.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from newsight.app.resilience import (
    SYNTHESIS_POLICY,
    RemoteCallResult,
    RetryPolicy,
    Sleeper,
    call,
    unavailable,
)
from newsight.errors import require_text

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.elevenlabs.io"
DEFAULT_VOICE_ID = "bIHbv24MWmeRgasZH58o"
DEFAULT_MODEL_ID = "eleven_monolingual_v1"
DEFAULT_TIMEOUT = 30.0

VOICE_SETTINGS: Dict[str, Any] = {
    "stability": 0.5,
    "similarity_boost": 0.5,
    "style": 0.0,
    "use_speaker_boost": True,
}


def _decode_audio(response: httpx.Response) -> bytes:
    audio = response.content
    if not audio:
        raise ValueError("empty audio body")
    return audio


class SpeechClient:
    """
    HTTP client for ElevenLabs text-to-speech.
    """

    available = True

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        voice_id: str = DEFAULT_VOICE_ID,
        model_id: str = DEFAULT_MODEL_ID,
        timeout: float = DEFAULT_TIMEOUT,
        policy: RetryPolicy = SYNTHESIS_POLICY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        """
        Initialize speech client.

        Args:
            api_key: ElevenLabs API key (sent as xi-api-key)
            base_url: API base URL
            voice_id: Default voice
            model_id: Synthesis model
            timeout: Request timeout in seconds
            policy: Retry policy for synthesis calls
            transport: Optional httpx transport (tests use MockTransport)
            sleep: Backoff sleeper
        """
        self.base_url = base_url.rstrip("/")
        self.voice_id = voice_id
        self.model_id = model_id
        self.policy = policy
        self._sleep = sleep
        self._api_key = api_key
        self.client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    async def synthesize(self, text: str, voice_id: Optional[str] = None) -> RemoteCallResult[bytes]:
        """
        Synthesize *text* to audio.

        Returns:
            success(audio bytes) or fallback(reason); never raises for
            remote failures.

        Raises:
            ValidationError: If text is missing or blank.
        """
        require_text(text)
        url = f"{self.base_url}/v1/text-to-speech/{voice_id or self.voice_id}"
        payload = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": VOICE_SETTINGS,
        }
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self._api_key,
        }
        return await call(
            lambda: self.client.post(url, json=payload, headers=headers),
            self.policy,
            decode=_decode_audio,
            name="speech",
            sleep=self._sleep,
        )

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()


class UnavailableSpeech:
    """Speech capability used when ELEVENLABS_API_KEY is not configured."""

    available = False

    async def synthesize(self, text: str, voice_id: Optional[str] = None) -> RemoteCallResult[bytes]:
        require_text(text)
        return unavailable("speech", "ElevenLabs API key not configured")

    async def close(self):
        pass
