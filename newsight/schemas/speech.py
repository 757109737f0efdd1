"""
Speech synthesis wire schemas.

POST /v1/tts answers HTTP 200 even when synthesis is degraded; the client
detects that case through ``fallback``.
"""

from typing import Optional

from pydantic import BaseModel


class TTSRequest(BaseModel):
    text: str = ""
    voice_id: Optional[str] = None


class TTSResponse(BaseModel):
    audio_url: Optional[str] = None
    fallback: bool = False
    error: Optional[str] = None
