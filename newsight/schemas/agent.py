"""
Agent and simplify wire schemas.
Pydantic models for the /v1/agent one-shot command endpoint and /v1/simplify.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from newsight.schemas.news import Article


# ──────────────────────────────────────────────────────────────────────────────
# Agent
# ──────────────────────────────────────────────────────────────────────────────

class AgentRequest(BaseModel):
    message: str = ""
    conversation_id: Optional[str] = None
    simplify: bool = False
    articles: List[Article] = Field(default_factory=list)


class AgentAction(BaseModel):
    type: str
    data: Optional[Dict[str, Any]] = None


class AgentResponse(BaseModel):
    response: str
    audio_url: Optional[str] = None
    conversation_id: str
    action: Optional[AgentAction] = None
    tts_available: bool = True


# ──────────────────────────────────────────────────────────────────────────────
# Simplify
# ──────────────────────────────────────────────────────────────────────────────

class SimplifyRequest(BaseModel):
    text: str = ""


class SimplifyResponse(BaseModel):
    simplified: str
    fallback: bool = False
