"""
NewSight - Classification Clients

Remote tier of the intent classifier.  Every implementation exposes
``available`` and ``classify(utterance, label_set, context)`` returning
RemoteCallResult[{"label": ..., "parameter": ...}].

    RemoteClassifier      POST {url} with {utterance, label_set, context}
    LLMClassifier         chat-completions prompt, "LABEL" or "LABEL:param"
    UnavailableClassifier no capability configured; local tier only
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from newsight.app.resilience import (
    CLASSIFICATION_POLICY,
    RemoteCallResult,
    RetryPolicy,
    Sleeper,
    call,
    unavailable,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

LABEL_DESCRIPTIONS: Dict[str, str] = {
    "ENABLE": "the user says yes or wants this feature turned on",
    "DISABLE": "the user says no or does not need this feature",
    "BIGGER": "the user wants larger text",
    "SMALLER": "the user wants smaller text",
    "SAME": "the user wants to keep the current size",
    "SAVE": "the user shared a meaningful support need worth saving",
    "NONE": "the user has nothing to add",
    "GET_NEWS": "User wants to get/fetch/see news or headlines",
    "READ_ARTICLE": "User wants an article read aloud (e.g. \"read article 1\", \"read the NBA article\")",
    "READ_FULL_ARTICLE": "User specifically wants the full/complete text of an article",
    "ZOOM_IN": "User wants to make text bigger/larger or zoom in",
    "ZOOM_OUT": "User wants to make text smaller or zoom out",
    "HIGH_CONTRAST": "User wants high contrast mode or dark mode",
    "NORMAL_CONTRAST": "User wants to return to normal colors",
    "SIMPLIFY_TEXT": "User wants simpler language",
    "STOP_AUDIO": "User wants to stop audio playback or stop reading",
    "GENERAL": "User is asking a general question or having a conversation",
}


def _decode_label(response: httpx.Response) -> Dict[str, Any]:
    data = response.json()
    if not isinstance(data, dict) or not isinstance(data.get("label"), str):
        raise ValueError("classification response has no label")
    return {"label": data["label"], "parameter": data.get("parameter")}


def parse_label_line(text: str) -> Dict[str, Any]:
    """Parse an LLM reply of the form ``LABEL`` or ``LABEL:parameter``."""
    line = text.strip().splitlines()[0].strip().strip('"').strip()
    label, _, parameter = line.partition(":")
    return {"label": label.strip().upper(), "parameter": parameter.strip() or None}


def classification_prompt(label_set: Sequence[str], context: Dict[str, Any]) -> str:
    lines = [
        "You are an intent classifier for an accessibility-focused voice assistant.",
        f"Context: {context.get('name', 'general')}.",
        "Available labels:",
    ]
    for label in label_set:
        lines.append(f"- {label}: {LABEL_DESCRIPTIONS.get(label, label)}")
    titles = context.get("article_titles") or []
    if titles:
        lines.append("Articles on screen:")
        lines.extend(f"{i}. {t}" for i, t in enumerate(titles, start=1))
    lines.append(
        "Respond with only the label name. For READ_ARTICLE or READ_FULL_ARTICLE you "
        "may add the article identifier after a colon (e.g. \"READ_ARTICLE:1\")."
    )
    return "\n".join(lines)


class RemoteClassifier:
    """
    HTTP client for a dedicated classification service.
    """

    available = True

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        policy: RetryPolicy = CLASSIFICATION_POLICY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.url = url
        self.policy = policy
        self._sleep = sleep
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    async def classify(self, utterance: str, label_set: List[str],
                       context: Dict[str, Any]) -> RemoteCallResult[Dict[str, Any]]:
        payload = {"utterance": utterance, "label_set": label_set, "context": context}
        return await call(
            lambda: self.client.post(self.url, json=payload, headers=self._headers),
            self.policy,
            decode=_decode_label,
            name="classifier",
            sleep=self._sleep,
        )

    async def close(self):
        await self.client.aclose()


class LLMClassifier:
    """Classification through the chat-completions LLM."""

    def __init__(self, llm):
        self._llm = llm

    @property
    def available(self) -> bool:
        return getattr(self._llm, "available", True)

    async def classify(self, utterance: str, label_set: List[str],
                       context: Dict[str, Any]) -> RemoteCallResult[Dict[str, Any]]:
        messages = [
            {"role": "system", "content": classification_prompt(label_set, context)},
            {"role": "user", "content": utterance},
        ]
        result = await self._llm.complete(messages, max_tokens=50, temperature=0.1,
                                          name="classifier")
        return result.map(parse_label_line)

    async def close(self):
        pass


class UnavailableClassifier:
    available = False

    async def classify(self, utterance: str, label_set: List[str],
                       context: Dict[str, Any]) -> RemoteCallResult[Dict[str, Any]]:
        return unavailable("classifier")

    async def close(self):
        pass
