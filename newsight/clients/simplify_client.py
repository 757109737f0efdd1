"""
NewSight - Text Simplification Client

simplify(text) asks the LLM to rewrite text in plain language and returns a
RemoteCallResult.  simplify_locally() is the deterministic word-substitution
pass callers use when the LLM is unavailable.
"""

import logging
import re
from typing import Tuple

from newsight.app.resilience import RemoteCallResult
from newsight.errors import require_text

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 2000
LONG_SENTENCE_WORDS = 20

SIMPLIFY_PROMPT = (
    "You are an expert at simplifying text for people with dyslexia and reading "
    "difficulties.\n\n"
    "Rewrite the given text to make it easier to read and understand:\n"
    "1. Use simple, common words instead of complex vocabulary\n"
    "2. Break long sentences into shorter ones (max 15-20 words per sentence)\n"
    "3. Use active voice instead of passive voice\n"
    "4. Remove unnecessary jargon and technical terms\n"
    "5. Maintain the original meaning and key information\n"
    "6. Keep paragraphs short (2-3 sentences max)"
)

WORD_SUBSTITUTIONS = (
    ("utilize", "use"),
    ("facilitate", "help"),
    ("demonstrate", "show"),
    ("implement", "do"),
    ("participate", "take part"),
    ("accommodate", "fit"),
    ("initiate", "start"),
    ("terminate", "end"),
    ("subsequent", "next"),
    ("previous", "before"),
    ("additional", "more"),
    ("numerous", "many"),
    ("significant", "important"),
    ("comprehensive", "complete"),
    ("fundamental", "basic"),
    ("essential", "needed"),
    ("appropriate", "right"),
    ("effective", "good"),
    ("efficient", "fast"),
    ("optimal", "best"),
    ("maximum", "most"),
    ("minimum", "least"),
)
_SUBSTITUTIONS = tuple(
    (re.compile(rf"\b{word}\b", re.IGNORECASE), plain) for word, plain in WORD_SUBSTITUTIONS
)
CONJUNCTIONS = ("and", "but", "or", "so", "because", "since", "while", "although")


def _split_long(sentence: str) -> str:
    words = sentence.split()
    if len(words) <= LONG_SENTENCE_WORDS:
        return sentence
    for conj in CONJUNCTIONS:
        idx = next((i for i, w in enumerate(words) if w.lower() == conj), -1)
        if 5 < idx < len(words) - 5:
            first = " ".join(words[:idx])
            second = " ".join(words[idx:])
            return f"{first}. {second[0].upper()}{second[1:]}"
    return sentence


def simplify_locally(text: str) -> str:
    """Replace complex words with plain ones and split very long sentences."""
    simplified = text
    for pattern, plain in _SUBSTITUTIONS:
        simplified = pattern.sub(plain, simplified)
    sentences = [s.strip() for s in re.split(r"[.!?]+", simplified) if s.strip()]
    if not sentences:
        return text
    return ". ".join(_split_long(s) for s in sentences) + "."


class SimplifyClient:
    """Plain-language rewriting through the chat-completions LLM."""

    def __init__(self, llm, max_tokens: int = DEFAULT_MAX_TOKENS):
        self._llm = llm
        self.max_tokens = max_tokens

    @property
    def available(self) -> bool:
        return getattr(self._llm, "available", True)

    async def simplify(self, text: str) -> RemoteCallResult[str]:
        require_text(text)
        messages = [
            {"role": "system", "content": SIMPLIFY_PROMPT},
            {"role": "user",
             "content": f"Please simplify this text for someone with dyslexia:\n\n{text}"},
        ]
        return await self._llm.complete(
            messages,
            max_tokens=min(self.max_tokens, max(len(text) * 2, 16)),
            temperature=0.3,
            name="simplify",
        )

    async def simplify_or_local(self, text: str) -> Tuple[str, bool]:
        """Return (simplified text, used_fallback)."""
        result = await self.simplify(text)
        if result.ok:
            return result.value, False
        logger.info("simplify_client: local fallback  reason=%s", result.reason)
        return simplify_locally(text), True
