"""
NewSight — Two-Tier Intent Classifier and Action Resolver

Tier 1 (remote):  the injected classifier capability is asked for one label
                  from the context's label set.  Anything outside the set,
                  or any fallback, falls through.
Tier 2 (local):   deterministic keyword rules scoped to the context.  Never
                  calls out, never fails, always yields a member of the set.

Keyword syntax used by the rule tables:
    "word"        whole-word match
    "stem*"       any word starting with stem
    "two words"   phrase, matched as a substring of the normalised utterance
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from newsight.app.actions import Action
from newsight.errors import ValidationError
from newsight.schemas.profile import Settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Label sets
# ---------------------------------------------------------------------------

NEWS_CONTEXT = "news"

TOGGLE_LABELS = ("ENABLE", "DISABLE")
SLIDER_LABELS = ("BIGGER", "SMALLER", "SAME")
TEXT_LABELS = ("SAVE", "NONE")
NEWS_LABELS = (
    "GET_NEWS", "READ_ARTICLE", "READ_FULL_ARTICLE", "ZOOM_IN", "ZOOM_OUT",
    "HIGH_CONTRAST", "NORMAL_CONTRAST", "SIMPLIFY_TEXT", "STOP_AUDIO", "GENERAL",
)

CONTEXT_LABELS: Dict[str, Tuple[str, ...]] = {
    "color_adjust": TOGGLE_LABELS,
    "contrast_mode": TOGGLE_LABELS,
    "simplify": TOGGLE_LABELS,
    "font_scale": SLIDER_LABELS,
    "note": TEXT_LABELS,
    NEWS_CONTEXT: NEWS_LABELS,
}

NEUTRAL_LABELS: Dict[str, str] = {
    "color_adjust": "DISABLE",
    "contrast_mode": "DISABLE",
    "simplify": "DISABLE",
    "font_scale": "SAME",
    "note": "NONE",
    NEWS_CONTEXT: "GENERAL",
}


@dataclass(frozen=True)
class ClassificationContext:
    """What the classifier needs to know about the current turn."""
    name: str
    article_titles: Tuple[str, ...] = ()
    settings: Settings = field(default_factory=Settings)

    def __post_init__(self):
        if self.name not in CONTEXT_LABELS:
            raise ValidationError("context", f"unknown classification context: {self.name!r}")

    @property
    def labels(self) -> Tuple[str, ...]:
        return CONTEXT_LABELS[self.name]

    @property
    def neutral(self) -> str:
        return NEUTRAL_LABELS[self.name]

    def to_wire(self) -> Dict[str, Any]:
        wire: Dict[str, Any] = {"name": self.name}
        if self.article_titles:
            wire["article_titles"] = list(self.article_titles)
        return wire


@dataclass(frozen=True)
class Classification:
    label: str
    parameter: Optional[str] = None
    source: str = "local"


# ---------------------------------------------------------------------------
# Keyword matching
# ---------------------------------------------------------------------------

_NON_WORD = re.compile(r"[^a-z0-9' ]+")


def normalise(utterance: str) -> str:
    text = utterance.lower().replace("’", "'")
    text = _NON_WORD.sub(" ", text)
    return " ".join(text.split())


def _matches(text: str, words: Sequence[str], keyword: str) -> bool:
    if " " in keyword:
        return keyword in text
    if keyword.endswith("*"):
        stem = keyword[:-1]
        return any(w.startswith(stem) for w in words)
    return keyword in words


def matches_any(text: str, keywords: Iterable[str]) -> bool:
    words = text.split()
    return any(_matches(text, words, kw) for kw in keywords)


COLOR_ADJUST_KEYWORDS = (
    "yes", "color*", "colour*", "blind", "difficult", "hard", "trouble",
    "problem*", "issue*", "red", "green",
)
CONTRAST_KEYWORDS = (
    "yes", "need", "help", "contrast", "bright", "dark", "hard to see", "difficult",
)
SIMPLIFY_KEYWORDS = (
    "yes", "simpl*", "help", "easier", "clear", "understand", "read",
)
BIGGER_KEYWORDS = ("big*", "larg*", "increas*", "more", "up")
SMALLER_KEYWORDS = ("small*", "decreas*", "less", "down")
NOTE_DECLINE_KEYWORDS = ("no", "nothing", "not really")
NOTE_MIN_LENGTH = 10

TOGGLE_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "color_adjust": COLOR_ADJUST_KEYWORDS,
    "contrast_mode": CONTRAST_KEYWORDS,
    "simplify": SIMPLIFY_KEYWORDS,
}

# News rules, most specific first.
STOP_OBJECTS = ("audio", "reading", "speaking", "talking")
FULL_MARKERS = ("full", "complete", "entire", "whole")
READ_MARKERS = ("article*", "story", "stories", "this", "aloud", "to me")
NEWS_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("ZOOM_OUT", ("zoom out", "smaller", "decrease size", "reduce size")),
    ("ZOOM_IN", ("zoom in", "bigger", "larger", "increase size")),
    ("NORMAL_CONTRAST", ("normal contrast", "normal color", "normal colour",
                         "regular color", "regular colour", "low contrast",
                         "turn off contrast", "light mode")),
    ("HIGH_CONTRAST", ("contrast", "dark mode")),
    ("SIMPLIFY_TEXT", ("simpl*", "easier to read", "easy words")),
    ("GET_NEWS", ("news", "headline*", "what's new", "happening")),
)


# ---------------------------------------------------------------------------
# Article identifiers
# ---------------------------------------------------------------------------

ORDINALS = ("first", "second", "third", "fourth", "fifth",
            "sixth", "seventh", "eighth", "ninth", "tenth")
NUMBER_WORDS = ("one", "two", "three", "four", "five",
                "six", "seven", "eight", "nine", "ten")

_IDENTIFIER_STOPWORDS = frozenset({
    "read", "reading", "the", "a", "an", "article", "articles", "story", "stories",
    "about", "me", "to", "please", "full", "complete", "entire", "whole", "can",
    "you", "could", "would", "i", "want", "hear", "of", "on", "this", "aloud",
    "number", "one's", "that", "it", "headline", "and", "for",
})


def extract_article_identifier(utterance: str, titles: Sequence[str] = ()) -> Optional[str]:
    """Pull an article reference out of a spoken command.

    Returns a digit string, an ordinal word, or a keyword; None if the
    utterance names no article at all.
    """
    words = normalise(utterance).split()
    for w in words:
        if w.isdigit():
            return w
        if w in ORDINALS:
            return w
        if w in NUMBER_WORDS:
            return str(NUMBER_WORDS.index(w) + 1)

    remaining = [w for w in words if w not in _IDENTIFIER_STOPWORDS]
    if not remaining:
        return None
    lowered = [t.lower() for t in titles]
    for w in sorted(remaining, key=len, reverse=True):
        if any(w in t for t in lowered):
            return w
    return " ".join(remaining)


def resolve_article(identifier: Optional[str], titles: Sequence[str]) -> Optional[int]:
    """Return the 0-based index *identifier* refers to, or None.

    A number is 1-based and must be in range; an ordinal word maps to its
    position; anything else is a case-insensitive title substring.  The
    first match wins.
    """
    if identifier is None:
        return None
    ident = identifier.strip().lower()
    if not ident:
        return None

    position: Optional[int] = None
    if ident.isdigit():
        position = int(ident)
    elif ident in ORDINALS:
        position = ORDINALS.index(ident) + 1
    elif ident in NUMBER_WORDS:
        position = NUMBER_WORDS.index(ident) + 1
    if position is not None and 1 <= position <= len(titles):
        return position - 1

    for i, title in enumerate(titles):
        if ident in title.lower():
            return i
    return None


# ---------------------------------------------------------------------------
# Local tier
# ---------------------------------------------------------------------------

def _classify_news(text: str, utterance: str, titles: Sequence[str]) -> Classification:
    words = text.split()

    if "stop" in words and (matches_any(text, STOP_OBJECTS) or len(words) <= 2):
        return Classification("STOP_AUDIO")

    if matches_any(text, ("read", "reading")):
        ident = extract_article_identifier(utterance, titles)
        named = ident is not None and (
            ident.isdigit() or ident in ORDINALS or resolve_article(ident, titles) is not None)
        if matches_any(text, FULL_MARKERS):
            return Classification("READ_FULL_ARTICLE", ident)
        if matches_any(text, READ_MARKERS) or named:
            return Classification("READ_ARTICLE", ident)

    for label, keywords in NEWS_RULES:
        if matches_any(text, keywords):
            return Classification(label)
    return Classification("GENERAL")


def classify_locally(utterance: str, context: ClassificationContext) -> Classification:
    """Deterministic keyword tier.  Always returns a label in context.labels."""
    text = normalise(utterance)
    name = context.name

    if name in TOGGLE_KEYWORDS:
        label = "ENABLE" if matches_any(text, TOGGLE_KEYWORDS[name]) else "DISABLE"
        return Classification(label)

    if name == "font_scale":
        if matches_any(text, BIGGER_KEYWORDS):
            return Classification("BIGGER")
        if matches_any(text, SMALLER_KEYWORDS):
            return Classification("SMALLER")
        return Classification("SAME")

    if name == "note":
        meaningful = len(utterance.strip()) > NOTE_MIN_LENGTH
        if meaningful and not matches_any(text, NOTE_DECLINE_KEYWORDS):
            return Classification("SAVE")
        return Classification("NONE")

    return _classify_news(text, utterance, context.article_titles)


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------

class IntentClassifier:
    """
    Resolve an utterance to exactly one label, then to an Action.

    *remote* is any object exposing ``available`` and an awaitable
    ``classify(utterance, label_set, context) -> RemoteCallResult[dict]``;
    None means local-only.
    """

    def __init__(self, remote=None):
        self._remote = remote

    @property
    def remote_available(self) -> bool:
        return self._remote is not None and getattr(self._remote, "available", True)

    async def classify(self, utterance: str, context: ClassificationContext) -> Classification:
        if not isinstance(utterance, str):
            raise ValidationError("utterance", "utterance must be a string")
        if not utterance.strip():
            return Classification(context.neutral)

        if self.remote_available:
            result = await self._remote.classify(utterance, list(context.labels), context.to_wire())
            if result.ok:
                label, parameter = self._read_remote(result.value)
                if label in context.labels:
                    logger.info(
                        "intent: remote  context=%s  label=%s  parameter=%s",
                        context.name, label, parameter,
                    )
                    return Classification(label, parameter, source="remote")
                logger.info(
                    "intent: remote label rejected  context=%s  label=%r", context.name, label,
                )
            else:
                logger.info(
                    "intent: remote fallback  context=%s  reason=%s", context.name, result.reason,
                )

        local = classify_locally(utterance, context)
        logger.info("intent: local  context=%s  label=%s", context.name, local.label)
        return local

    @staticmethod
    def _read_remote(payload: Any) -> Tuple[Optional[str], Optional[str]]:
        if not isinstance(payload, dict):
            return None, None
        label = payload.get("label")
        parameter = payload.get("parameter")
        if isinstance(label, str):
            label = label.strip().upper()
        else:
            label = None
        if parameter is not None and not isinstance(parameter, str):
            parameter = str(parameter)
        return label, parameter or None

    def resolve_action(self, classification: Classification, utterance: str,
                       context: ClassificationContext) -> Action:
        """Map a label in *context* to the Action it stands for."""
        return resolve_action(classification, utterance, context)

    async def classify_action(self, utterance: str, context: ClassificationContext) -> Action:
        classification = await self.classify(utterance, context)
        return resolve_action(classification, utterance, context)


def resolve_action(classification: Classification, utterance: str,
                   context: ClassificationContext) -> Action:
    label = classification.label
    name = context.name

    if name == "color_adjust":
        return Action.color_adjust(label == "ENABLE")
    if name == "contrast_mode":
        return Action.high_contrast() if label == "ENABLE" else Action.normal_contrast()
    if name == "simplify":
        return Action.simplify_text(label == "ENABLE")
    if name == "font_scale":
        if label == "BIGGER":
            return Action.zoom_in(steps=2)
        if label == "SMALLER":
            return Action.zoom_out(steps=1)
        return Action.none("font_scale")
    if name == "note":
        if label == "SAVE":
            return Action.save_note(utterance.strip())
        return Action.none("note")

    # news
    if label in ("READ_ARTICLE", "READ_FULL_ARTICLE"):
        ident = classification.parameter or extract_article_identifier(
            utterance, context.article_titles)
        return Action.read_article(ident, full_content=(label == "READ_FULL_ARTICLE"))
    if label == "GET_NEWS":
        return Action.get_news()
    if label == "ZOOM_IN":
        return Action.zoom_in(steps=1)
    if label == "ZOOM_OUT":
        return Action.zoom_out(steps=1)
    if label == "HIGH_CONTRAST":
        return Action.high_contrast()
    if label == "NORMAL_CONTRAST":
        return Action.normal_contrast()
    if label == "SIMPLIFY_TEXT":
        return Action.simplify_text(not context.settings.simplify)
    if label == "STOP_AUDIO":
        return Action.stop_audio()
    return Action.general(utterance)
