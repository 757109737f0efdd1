"""
Gateway - Speech Route
POST /v1/tts: synthesise text and return it as a data URL.  Degradation is
reported in-band (HTTP 200, fallback=true) so clients switch to text-only.
"""

import base64
import logging

from newsight.app.resilience import FailureClass, RemoteCallResult
from newsight.errors import require_text
from newsight.schemas.speech import TTSRequest, TTSResponse

logger = logging.getLogger(__name__)

AUTH_MESSAGE = ("ElevenLabs authentication issue detected. "
                "The application will continue without voice features.")
RATE_LIMIT_MESSAGE = "ElevenLabs rate limit exceeded. Please wait before trying voice features again."
UNAVAILABLE_MESSAGE = "ElevenLabs API key not configured"
GENERIC_MESSAGE = "TTS service temporarily unavailable"


def fallback_message(result: RemoteCallResult) -> str:
    """User-facing reason for a speech fallback."""
    if result.failure == FailureClass.UNAVAILABLE:
        return UNAVAILABLE_MESSAGE
    if result.status_code in (401, 403):
        return AUTH_MESSAGE
    if result.status_code == 429:
        return RATE_LIMIT_MESSAGE
    return GENERIC_MESSAGE


def to_data_url(audio: bytes) -> str:
    return "data:audio/mpeg;base64," + base64.b64encode(audio).decode("ascii")


async def handle_tts(request: TTSRequest, speech, correlation_id: str) -> TTSResponse:
    text = require_text(request.text)
    result = await speech.synthesize(text, request.voice_id)
    if result.ok:
        return TTSResponse(audio_url=to_data_url(result.value))

    logger.warning("tts route: fallback  reason=%s  correlation_id=%s",
                   result.reason, correlation_id)
    return TTSResponse(fallback=True, error=fallback_message(result))
