"""Configuration steps for the setup dialogue."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class InputKind(str, Enum):
    TOGGLE = "toggle"
    SLIDER = "slider"
    TEXT = "text"


@dataclass(frozen=True)
class ConfigurationStep:
    id: str
    prompt_text: str
    input_kind: InputKind
    target_key: str


DEFAULT_STEPS: Tuple[ConfigurationStep, ...] = (
    ConfigurationStep(
        id="color_adjust",
        prompt_text=(
            "Welcome to NewSight! I'm here to help you set up your news experience. "
            "Let's start by checking if you have any issues seeing certain colors?"
        ),
        input_kind=InputKind.TOGGLE,
        target_key="color_adjust",
    ),
    ConfigurationStep(
        id="contrast_mode",
        prompt_text="Do you need high contrast mode to see text more clearly?",
        input_kind=InputKind.TOGGLE,
        target_key="contrast_mode",
    ),
    ConfigurationStep(
        id="font_scale",
        prompt_text=(
            "Let's adjust the text size. I'll start with normal size - "
            "tell me if you'd like it bigger or smaller."
        ),
        input_kind=InputKind.SLIDER,
        target_key="font_scale",
    ),
    ConfigurationStep(
        id="simplify",
        prompt_text="Should I simplify the language to make articles easier to read?",
        input_kind=InputKind.TOGGLE,
        target_key="simplify",
    ),
    ConfigurationStep(
        id="note",
        prompt_text="Is there anything else I should know to support you better?",
        input_kind=InputKind.TEXT,
        target_key="note",
    ),
)

CLOSING_LINE = "Thanks! I'm customizing your NewSight experience now..."
NEWS_GREETING = (
    "Welcome to your news. Say \"get news\" to hear today's headlines, "
    "\"read article one\" to hear a story, or \"stop\" to stop reading."
)
