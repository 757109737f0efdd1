"""
Tests for app.action_executor — pure (settings, action) -> result.

Verifies:
    E1. Every settings change carries exactly one PERSIST_PROFILE directive.
    E2. Actions that change nothing do not persist.
    E3. Font scale is clamped and reports when it is at a limit.
    E4. ReadArticle resolves the identifier against the displayed articles.
    E5. News-only directives (fetch, generate, refresh, stop) are emitted.
    E6. Replaying an action against the same inputs gives the same result.
"""

from newsight.app.action_executor import (
    FONT_AT_MAX,
    FONT_AT_MIN,
    FONT_KEPT,
    NEWS,
    NO_ARTICLES,
    NOTE_NONE,
    NOTE_SAVED,
    SETUP,
    STOPPING_AUDIO,
    WHICH_ARTICLE,
    SideEffectKind,
    article_not_found,
    execute_action,
)
from newsight.app.actions import Action
from newsight.schemas.news import DisplayArticle
from newsight.schemas.profile import ContrastMode, Settings


def _articles():
    return [
        DisplayArticle(title="Markets rally", description="Stocks rose.",
                       content="Stocks rose sharply on Tuesday."),
        DisplayArticle(title="NBA finals set", description="Teams meet again.",
                       content="The two best teams meet again on Thursday."),
    ]


def _persists(result) -> int:
    return sum(1 for e in result.side_effects if e.kind == SideEffectKind.PERSIST_PROFILE)


class TestSettingsActions:
    """E1-E3."""

    def test_color_adjust_enable(self):
        result = execute_action(Settings(), Action.color_adjust(True))
        assert result.settings.color_adjust is True
        assert result.feedback == "Color adjustments enabled!"
        assert result.changed
        assert _persists(result) == 1

    def test_persist_payload_is_new_profile(self):
        result = execute_action(Settings(), Action.high_contrast())
        effect = result.first(SideEffectKind.PERSIST_PROFILE)
        assert effect.payload["profile"]["contrast_mode"] == "high"

    def test_unchanged_toggle_does_not_persist(self):
        result = execute_action(Settings(), Action.normal_contrast())
        assert result.feedback == "High contrast mode disabled."
        assert not result.changed
        assert result.side_effects == ()

    def test_contrast_feedback_depends_on_mode(self):
        setup = execute_action(Settings(), Action.high_contrast(), mode=SETUP)
        news = execute_action(Settings(), Action.high_contrast(), mode=NEWS)
        assert setup.feedback == "High contrast mode enabled!"
        assert news.feedback.startswith("I'm enabling high contrast mode")
        assert news.settings.contrast_mode == ContrastMode.HIGH

    def test_zoom_in_two_steps(self):
        result = execute_action(Settings(font_scale=4), Action.zoom_in(steps=2))
        assert result.settings.font_scale == 6
        assert result.feedback == "Font size increased!"

    def test_zoom_in_clamped(self):
        result = execute_action(Settings(font_scale=5), Action.zoom_in(steps=2))
        assert result.settings.font_scale == 6
        assert result.changed

    def test_zoom_at_max(self):
        result = execute_action(Settings(font_scale=6), Action.zoom_in())
        assert result.settings.font_scale == 6
        assert result.feedback == FONT_AT_MAX
        assert not result.changed
        assert _persists(result) == 0

    def test_zoom_at_min(self):
        result = execute_action(Settings(font_scale=1), Action.zoom_out(), mode=NEWS)
        assert result.feedback == FONT_AT_MIN
        assert not result.changed

    def test_font_kept(self):
        result = execute_action(Settings(), Action.none("font_scale"))
        assert result.feedback == FONT_KEPT
        assert result.side_effects == ()

    def test_note_saved_and_declined(self):
        saved = execute_action(Settings(), Action.save_note("I use a screen reader"))
        assert saved.settings.note == "I use a screen reader"
        assert saved.feedback == NOTE_SAVED
        declined = execute_action(Settings(), Action.none("note"))
        assert declined.feedback == NOTE_NONE
        assert not declined.changed

    def test_input_settings_untouched(self):
        original = Settings()
        execute_action(original, Action.zoom_in(steps=2))
        assert original.font_scale == 4

    def test_simplify_in_setup_has_no_refresh(self):
        result = execute_action(Settings(), Action.simplify_text(True), mode=SETUP)
        assert result.feedback == "Text simplification enabled!"
        assert not result.has(SideEffectKind.REFRESH_CONTENT)

    def test_simplify_in_news_refreshes_content(self):
        result = execute_action(Settings(), Action.simplify_text(True), mode=NEWS)
        assert result.settings.simplify is True
        assert result.has(SideEffectKind.REFRESH_CONTENT)
        assert _persists(result) == 1


class TestReadArticle:
    """E4."""

    def test_no_articles(self):
        result = execute_action(Settings(), Action.read_article("1"), mode=NEWS)
        assert result.feedback == NO_ARTICLES
        assert result.side_effects == ()

    def test_no_identifier(self):
        result = execute_action(Settings(), Action.read_article(None), _articles(), mode=NEWS)
        assert result.feedback == WHICH_ARTICLE

    def test_not_found(self):
        result = execute_action(Settings(), Action.read_article("zebra"), _articles(), mode=NEWS)
        assert result.feedback == article_not_found("zebra")
        assert not result.has(SideEffectKind.PLAY_TEXT)

    def test_summary_reading(self):
        result = execute_action(Settings(), Action.read_article("2"), _articles(), mode=NEWS)
        effect = result.first(SideEffectKind.PLAY_TEXT)
        assert effect.payload["text"] == "NBA finals set. Teams meet again."
        assert effect.payload["index"] == 1
        assert result.feedback == "Reading article: NBA finals set"

    def test_full_reading(self):
        action = Action.read_article("markets", full_content=True)
        result = execute_action(Settings(), action, _articles(), mode=NEWS)
        effect = result.first(SideEffectKind.PLAY_TEXT)
        assert effect.payload["text"] == "Markets rally. Stocks rose sharply on Tuesday."
        assert result.feedback == "Reading full article: Markets rally"
        assert not result.changed


class TestNewsDirectives:
    """E5-E6."""

    def test_get_news(self):
        result = execute_action(Settings(simplify=True), Action.get_news(), mode=NEWS)
        effect = result.first(SideEffectKind.FETCH_NEWS)
        assert effect.payload == {"simplify": True}
        assert result.feedback == ""

    def test_general(self):
        result = execute_action(Settings(), Action.general("tell me a joke"), mode=NEWS)
        assert result.first(SideEffectKind.GENERATE_RESPONSE).payload == {"message": "tell me a joke"}

    def test_stop_audio(self):
        result = execute_action(Settings(), Action.stop_audio(), mode=NEWS)
        assert result.feedback == STOPPING_AUDIO
        assert result.has(SideEffectKind.STOP_AUDIO)
        assert not result.changed

    def test_replay_is_deterministic(self):
        settings = Settings(font_scale=3)
        first = execute_action(settings, Action.zoom_in(), _articles(), mode=NEWS)
        second = execute_action(settings, Action.zoom_in(), _articles(), mode=NEWS)
        assert first == second
