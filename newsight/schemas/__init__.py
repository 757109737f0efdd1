"""Pydantic models shared by the dialogue core and the HTTP gateway."""

from newsight.schemas.profile import (
    Settings,
    ContrastMode,
    FONT_SCALE_LABELS,
    MIN_FONT_SCALE,
    MAX_FONT_SCALE,
    clamp_font_scale,
)
from newsight.schemas.news import Article, DisplayArticle, NewsResponse

__all__ = [
    "Settings",
    "ContrastMode",
    "FONT_SCALE_LABELS",
    "MIN_FONT_SCALE",
    "MAX_FONT_SCALE",
    "clamp_font_scale",
    "Article",
    "DisplayArticle",
    "NewsResponse",
]
