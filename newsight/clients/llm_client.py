"""
NewSight - LLM Client
HTTP client for an OpenAI-compatible chat-completions endpoint, plus the
response generator the news session and the agent endpoint use for spoken
summaries and open-ended replies.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from newsight.app.resilience import (
    LLM_POLICY,
    RemoteCallResult,
    RetryPolicy,
    Sleeper,
    call,
    unavailable,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TIMEOUT = 30.0

Messages = List[Dict[str, str]]


def _decode_completion(response: httpx.Response) -> str:
    data = response.json()
    content = data["choices"][0]["message"]["content"]
    if not isinstance(content, str) or not content.strip():
        raise ValueError("empty completion")
    return content.strip()


class LLMClient:
    """
    HTTP client for chat completions.
    """

    available = True

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        policy: RetryPolicy = LLM_POLICY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.policy = policy
        self._sleep = sleep
        self._api_key = api_key
        self.client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    async def complete(
        self,
        messages: Messages,
        max_tokens: int = 300,
        temperature: float = 0.7,
        name: str = "llm",
    ) -> RemoteCallResult[str]:
        """
        Run one chat completion.

        Args:
            messages: List of message dicts with 'role' and 'content'
            max_tokens: Completion token limit
            temperature: Sampling temperature
            name: Label used in resilience logs

        Returns:
            success(stripped message content) or fallback(reason)
        """
        url = f"{self.base_url}/chat/completions"
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        return await call(
            lambda: self.client.post(url, json=payload, headers=headers),
            self.policy,
            decode=_decode_completion,
            name=name,
            sleep=self._sleep,
        )

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()


class UnavailableLLM:
    """LLM capability used when OPENAI_API_KEY is not configured."""

    available = False

    async def complete(self, messages: Messages, max_tokens: int = 300,
                       temperature: float = 0.7, name: str = "llm") -> RemoteCallResult[str]:
        return unavailable("llm", "OpenAI API key not configured")

    async def close(self):
        pass


# ---------------------------------------------------------------------------
# Response generator
# ---------------------------------------------------------------------------

ASSISTANT_PROMPT = (
    "You are a helpful AI assistant focused on accessibility and helping people "
    "with disabilities. You can help with:\n\n"
    "- Getting and reading news articles (including full article content)\n"
    "- Making text bigger or smaller (zoom controls)\n"
    "- Enabling high contrast mode for better visibility\n"
    "- Simplifying complex text for easier reading\n"
    "- Reading content aloud\n"
    "- General conversation and assistance\n\n"
    "Be friendly, helpful, and always mention relevant accessibility features "
    "when appropriate. Keep responses concise but informative."
)

SIMPLE_LANGUAGE_NOTE = (
    "IMPORTANT: User has simplified language mode enabled. "
    "Please use simple words and short sentences in your response."
)


def _numbered(articles: Sequence[Any]) -> str:
    return "\n".join(
        f"{i}. {a.title} - {a.description}" for i, a in enumerate(articles, start=1)
    )


def summary_prompt(articles: Sequence[Any], simplified: bool) -> str:
    style = (
        "Use simple words and short sentences (like for a 5th grader). Keep sentences "
        "under 15 words. Use common, easy words."
        if simplified else "Use clear, accessible language"
    )
    limit = 120 if simplified else 150
    return (
        "You are a helpful news assistant for people with disabilities. Create a warm, "
        "engaging summary of today's top news stories.\n\n"
        "REQUIREMENTS:\n"
        "1. Use ONLY the news articles provided below - do not add any other stories\n"
        "2. Create a natural, conversational summary\n"
        f"3. {style}\n"
        f"4. Keep the summary under {limit} words\n"
        "5. Start with a friendly greeting like \"Here's what's happening today...\"\n"
        "6. End with an offer to read any article in full\n\n"
        f"Today's top news stories:\n{_numbered(articles)}"
    )


class ResponseGenerator:
    """Spoken summaries and open-ended replies backed by an LLM capability."""

    def __init__(self, llm):
        self._llm = llm

    @property
    def available(self) -> bool:
        return getattr(self._llm, "available", True)

    async def summarize_news(self, articles: Sequence[Any],
                             simplified: bool = False) -> RemoteCallResult[str]:
        user = ("Give me today's news in simple words" if simplified
                else "Give me a summary of today's top news")
        messages = [
            {"role": "system", "content": summary_prompt(articles, simplified)},
            {"role": "user", "content": user},
        ]
        return await self._llm.complete(
            messages, max_tokens=180 if simplified else 200, temperature=0.7,
            name="news_summary",
        )

    async def converse(self, message: str, articles: Sequence[Any] = (),
                       simplified: bool = False) -> RemoteCallResult[str]:
        context = []
        if simplified:
            context.append(SIMPLE_LANGUAGE_NOTE)
        if articles:
            context.append(f"Available news articles:\n{_numbered(articles)}")
        context.append(f"User said: {message}")
        messages = [
            {"role": "system", "content": ASSISTANT_PROMPT},
            {"role": "user", "content": "\n\n".join(context)},
        ]
        return await self._llm.complete(messages, max_tokens=300, temperature=0.7,
                                        name="converse")
