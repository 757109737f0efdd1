"""
Accessibility profile (Settings) model.

Settings is immutable; every change produces a new instance via evolve().
font_scale is clamped into [MIN_FONT_SCALE, MAX_FONT_SCALE] on construction,
so an out-of-range value can never be observed.
"""

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, field_validator

MIN_FONT_SCALE = 1
MAX_FONT_SCALE = 6
DEFAULT_FONT_SCALE = 4

FONT_SCALE_LABELS: Dict[int, str] = {
    1: "Very Small",
    2: "Small",
    3: "Normal",
    4: "Large",
    5: "Very Large",
    6: "Extra Large",
}


class ContrastMode(str, Enum):
    NONE = "none"
    HIGH = "high"
    GRAYSCALE = "grayscale"


def clamp_font_scale(value: int) -> int:
    return max(MIN_FONT_SCALE, min(MAX_FONT_SCALE, int(value)))


class Settings(BaseModel):
    """User accessibility profile."""
    model_config = ConfigDict(frozen=True)

    contrast_mode: ContrastMode = ContrastMode.NONE
    font_scale: int = DEFAULT_FONT_SCALE
    simplify: bool = False
    color_adjust: bool = False
    note: str = ""

    @field_validator("font_scale", mode="before")
    @classmethod
    def _clamp(cls, v: Any) -> int:
        return clamp_font_scale(v)

    @property
    def font_label(self) -> str:
        return FONT_SCALE_LABELS[self.font_scale]

    def evolve(self, **kwargs) -> "Settings":
        """Return a copy with *kwargs* applied (re-validated, so clamped)."""
        data = self.model_dump()
        data.update(kwargs)
        return Settings(**data)

    def to_snapshot(self) -> Dict[str, Any]:
        """Opaque key-value snapshot for the profile store."""
        return self.model_dump(mode="json")
