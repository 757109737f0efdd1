"""
NewSight — Action Executor

execute_action() is a pure function:

    (Settings, Action, articles) -> ExecutionResult(settings, feedback, side_effects)

It never performs I/O.  Side effects are returned as directives for the turn
controller to carry out (persist, play, stop, fetch, generate, refresh).
Replaying the same Action against the same inputs yields the same result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from newsight.app.actions import Action, ActionKind
from newsight.app.intent_classifier import resolve_article
from newsight.schemas.news import DisplayArticle
from newsight.schemas.profile import MAX_FONT_SCALE, MIN_FONT_SCALE, ContrastMode, Settings


class SideEffectKind(str, Enum):
    PERSIST_PROFILE = "PERSIST_PROFILE"
    PLAY_TEXT = "PLAY_TEXT"
    STOP_AUDIO = "STOP_AUDIO"
    FETCH_NEWS = "FETCH_NEWS"
    GENERATE_RESPONSE = "GENERATE_RESPONSE"
    REFRESH_CONTENT = "REFRESH_CONTENT"


@dataclass(frozen=True)
class SideEffect:
    kind: SideEffectKind
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ExecutionResult:
    settings: Settings
    feedback: str
    side_effects: Tuple[SideEffect, ...] = ()
    changed: bool = False

    def has(self, kind: SideEffectKind) -> bool:
        return any(e.kind == kind for e in self.side_effects)

    def first(self, kind: SideEffectKind) -> Optional[SideEffect]:
        for effect in self.side_effects:
            if effect.kind == kind:
                return effect
        return None


# Feedback wording differs between the guided setup and the news session.
SETUP = "setup"
NEWS = "news"

_FEEDBACK = {
    (ActionKind.COLOR_ADJUST, True): "Color adjustments enabled!",
    (ActionKind.COLOR_ADJUST, False): "Color adjustments disabled.",
    (SETUP, ActionKind.HIGH_CONTRAST): "High contrast mode enabled!",
    (SETUP, ActionKind.NORMAL_CONTRAST): "High contrast mode disabled.",
    (NEWS, ActionKind.HIGH_CONTRAST): (
        "I'm enabling high contrast mode for you. The page now has white text "
        "on a black background for better visibility."
    ),
    (NEWS, ActionKind.NORMAL_CONTRAST): (
        "I'm returning to normal contrast mode with the regular color scheme."
    ),
    (SETUP, ActionKind.SIMPLIFY_TEXT, True): "Text simplification enabled!",
    (SETUP, ActionKind.SIMPLIFY_TEXT, False): "Text simplification disabled.",
    (NEWS, ActionKind.SIMPLIFY_TEXT, True): (
        "Simplified language enabled - articles will use easier words."
    ),
    (NEWS, ActionKind.SIMPLIFY_TEXT, False): (
        "Simplified language disabled - articles will use normal language."
    ),
    (SETUP, ActionKind.ZOOM_IN): "Font size increased!",
    (SETUP, ActionKind.ZOOM_OUT): "Font size decreased!",
    (NEWS, ActionKind.ZOOM_IN): (
        "I'm making the text bigger for you. The page should now be easier "
        "to read with larger text."
    ),
    (NEWS, ActionKind.ZOOM_OUT): "I'm making the text smaller for you.",
}

FONT_AT_MAX = "The text is already at the largest size."
FONT_AT_MIN = "The text is already at the smallest size."
FONT_KEPT = "Font size kept at current setting."
NOTE_SAVED = "Your support note has been saved!"
NOTE_NONE = "No additional support needs noted."
STOPPING_AUDIO = "I'm stopping all audio playback now."
NO_ARTICLES = "I don't have any articles yet. Say \"get news\" to hear today's headlines."
WHICH_ARTICLE = "Which article would you like me to read? Say a number or a word from the headline."


def article_not_found(identifier: str) -> str:
    return (
        f"Sorry, I couldn't find article \"{identifier}\". "
        "Please try a different number or keyword."
    )


def _persisted(settings: Settings, feedback: str,
               *extra: SideEffect) -> ExecutionResult:
    effects = (SideEffect(SideEffectKind.PERSIST_PROFILE, {"profile": settings.to_snapshot()}),) + extra
    return ExecutionResult(settings, feedback, effects, changed=True)


def _zoom(settings: Settings, action: Action, mode: str) -> ExecutionResult:
    delta = action.steps if action.kind == ActionKind.ZOOM_IN else -action.steps
    target = max(MIN_FONT_SCALE, min(MAX_FONT_SCALE, settings.font_scale + delta))
    if target == settings.font_scale:
        at_limit = FONT_AT_MAX if delta > 0 else FONT_AT_MIN
        return ExecutionResult(settings, at_limit)
    return _persisted(settings.evolve(font_scale=target), _FEEDBACK[(mode, action.kind)])


def _read_article(settings: Settings, action: Action,
                  articles: Sequence[DisplayArticle]) -> ExecutionResult:
    if not articles:
        return ExecutionResult(settings, NO_ARTICLES)
    if not action.identifier:
        return ExecutionResult(settings, WHICH_ARTICLE)

    index = resolve_article(action.identifier, [a.title for a in articles])
    if index is None:
        return ExecutionResult(settings, article_not_found(action.identifier))

    article = articles[index]
    body = article.content if action.full_content else article.description
    text = f"{article.title}. {body}"
    label = "full article" if action.full_content else "article"
    effect = SideEffect(SideEffectKind.PLAY_TEXT, {
        "text": text, "index": index, "title": article.title,
    })
    return ExecutionResult(settings, f"Reading {label}: {article.title}", (effect,))


def execute_action(
    settings: Settings,
    action: Action,
    articles: Sequence[DisplayArticle] = (),
    mode: str = SETUP,
) -> ExecutionResult:
    """
    Apply *action* to *settings*.

    Args:
        settings: Current profile (never mutated; Settings is frozen).
        action:   The resolved Action for this turn.
        articles: Articles currently on display, for ReadArticle.
        mode:     "setup" or "news"; selects feedback wording.

    Every settings change carries a PERSIST_PROFILE directive.  Actions that
    would not change anything return ``changed=False`` and no persist.
    """
    kind = action.kind

    if kind == ActionKind.COLOR_ADJUST:
        enabled = bool(action.enabled)
        feedback = _FEEDBACK[(kind, enabled)]
        if settings.color_adjust == enabled:
            return ExecutionResult(settings, feedback)
        return _persisted(settings.evolve(color_adjust=enabled), feedback)

    if kind in (ActionKind.HIGH_CONTRAST, ActionKind.NORMAL_CONTRAST):
        target = ContrastMode.HIGH if kind == ActionKind.HIGH_CONTRAST else ContrastMode.NONE
        feedback = _FEEDBACK[(mode, kind)]
        if settings.contrast_mode == target:
            return ExecutionResult(settings, feedback)
        return _persisted(settings.evolve(contrast_mode=target), feedback)

    if kind == ActionKind.SIMPLIFY_TEXT:
        enabled = bool(action.enabled)
        feedback = _FEEDBACK[(mode, kind, enabled)]
        if settings.simplify == enabled:
            return ExecutionResult(settings, feedback)
        refresh = SideEffect(SideEffectKind.REFRESH_CONTENT, {"simplify": enabled})
        if mode == NEWS:
            return _persisted(settings.evolve(simplify=enabled), feedback, refresh)
        return _persisted(settings.evolve(simplify=enabled), feedback)

    if kind in (ActionKind.ZOOM_IN, ActionKind.ZOOM_OUT):
        return _zoom(settings, action, mode)

    if kind == ActionKind.SAVE_NOTE:
        if settings.note == action.text:
            return ExecutionResult(settings, NOTE_SAVED)
        return _persisted(settings.evolve(note=action.text), NOTE_SAVED)

    if kind == ActionKind.STOP_AUDIO:
        return ExecutionResult(settings, STOPPING_AUDIO,
                               (SideEffect(SideEffectKind.STOP_AUDIO),))

    if kind == ActionKind.READ_ARTICLE:
        return _read_article(settings, action, articles)

    if kind == ActionKind.GET_NEWS:
        return ExecutionResult(settings, "",
                               (SideEffect(SideEffectKind.FETCH_NEWS,
                                           {"simplify": settings.simplify}),))

    if kind == ActionKind.GENERAL:
        return ExecutionResult(settings, "",
                               (SideEffect(SideEffectKind.GENERATE_RESPONSE,
                                           {"message": action.text}),))

    # ActionKind.NONE
    if action.target_key == "font_scale":
        return ExecutionResult(settings, FONT_KEPT)
    if action.target_key == "note":
        return ExecutionResult(settings, NOTE_NONE)
    return ExecutionResult(settings, "")
