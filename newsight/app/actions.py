"""
Action variants produced by the intent resolver, one per turn.

Actions carry their target state explicitly (ColorAdjust/SimplifyText carry
``enabled``, zoom actions carry ``steps``) so executing one never depends on
toggling whatever the current value happens to be.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ActionKind(str, Enum):
    GET_NEWS = "GET_NEWS"
    ZOOM_IN = "ZOOM_IN"
    ZOOM_OUT = "ZOOM_OUT"
    HIGH_CONTRAST = "HIGH_CONTRAST"
    NORMAL_CONTRAST = "NORMAL_CONTRAST"
    READ_ARTICLE = "READ_ARTICLE"
    SIMPLIFY_TEXT = "SIMPLIFY_TEXT"
    STOP_AUDIO = "STOP_AUDIO"
    GENERAL = "GENERAL"
    COLOR_ADJUST = "COLOR_ADJUST"
    SAVE_NOTE = "SAVE_NOTE"
    NONE = "NONE"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    identifier: Optional[str] = None
    full_content: bool = False
    enabled: Optional[bool] = None
    steps: int = 1
    text: str = ""
    target_key: str = ""

    # ---- constructors ------------------------------------------------------

    @classmethod
    def get_news(cls) -> "Action":
        return cls(ActionKind.GET_NEWS)

    @classmethod
    def zoom_in(cls, steps: int = 1) -> "Action":
        return cls(ActionKind.ZOOM_IN, steps=steps)

    @classmethod
    def zoom_out(cls, steps: int = 1) -> "Action":
        return cls(ActionKind.ZOOM_OUT, steps=steps)

    @classmethod
    def high_contrast(cls) -> "Action":
        return cls(ActionKind.HIGH_CONTRAST)

    @classmethod
    def normal_contrast(cls) -> "Action":
        return cls(ActionKind.NORMAL_CONTRAST)

    @classmethod
    def read_article(cls, identifier: Optional[str], full_content: bool = False) -> "Action":
        return cls(ActionKind.READ_ARTICLE, identifier=identifier, full_content=full_content)

    @classmethod
    def simplify_text(cls, enabled: bool) -> "Action":
        return cls(ActionKind.SIMPLIFY_TEXT, enabled=enabled)

    @classmethod
    def stop_audio(cls) -> "Action":
        return cls(ActionKind.STOP_AUDIO)

    @classmethod
    def general(cls, text: str) -> "Action":
        return cls(ActionKind.GENERAL, text=text)

    @classmethod
    def color_adjust(cls, enabled: bool) -> "Action":
        return cls(ActionKind.COLOR_ADJUST, enabled=enabled)

    @classmethod
    def save_note(cls, text: str) -> "Action":
        return cls(ActionKind.SAVE_NOTE, text=text)

    @classmethod
    def none(cls, target_key: str = "") -> "Action":
        return cls(ActionKind.NONE, target_key=target_key)
