"""
NewSight — News Command Session

The same turn state machine as the guided setup, without a step sequence:
after the greeting, every turn classifies against the news vocabulary,
executes, performs side effects and goes back to LISTENING.  The session
never reaches COMPLETED; it ends only through stop().

News is an essential feature: a ConfigurationError from the content provider
turns it off for the rest of the session.  The error is reported once; later
requests get a short "unavailable" line without calling out.
"""

import logging
from typing import List, Optional, Sequence

from newsight.app.action_executor import NEWS, ExecutionResult, SideEffect, SideEffectKind
from newsight.app.intent_classifier import NEWS_CONTEXT, ClassificationContext
from newsight.app.steps import NEWS_GREETING
from newsight.app.turn_controller import Reply, TurnController
from newsight.errors import ConfigurationError
from newsight.schemas.news import Article, DisplayArticle

logger = logging.getLogger(__name__)

NEWS_FEATURE = "news"
SUMMARY_SIZE = 3

NEWS_UNAVAILABLE = "News is not available in this session because the news service is not configured."
NEWS_TROUBLE = "I'm having trouble getting the latest news right now. Please try again in a moment."
NEWS_EMPTY = "I'm sorry, I couldn't fetch any news articles right now. Please try again later."
GENERAL_FALLBACK = (
    "I received your message but could not generate a proper response. "
    "You can say \"get news\", \"read article one\", \"zoom in\" or \"high contrast\"."
)
NEXT_PROMPT = "What would you like to do next?"


def listing_summary(articles: Sequence[DisplayArticle]) -> str:
    """Deterministic spoken summary used when the response generator falls back."""
    top = list(articles)[:SUMMARY_SIZE]
    if not top:
        return NEWS_EMPTY
    parts = ["Here are today's top stories."]
    for i, article in enumerate(top, start=1):
        parts.append(f"{i}. {article.title}.")
    parts.append("I can read any of these articles in full if you'd like to hear more details.")
    return " ".join(parts)


class NewsTurnController(TurnController):
    """
    Turn orchestration for the open-ended news command session.

    Extra collaborators:
        news:       ``fetch() -> RemoteCallResult[list[Article]]``; may raise
                    ConfigurationError.
        simplifier: ``simplify(text) -> RemoteCallResult[str]``.
        responder:  ``summarize_news(articles, simplified)`` and
                    ``converse(message, articles, simplified)``, both
                    returning RemoteCallResult[str].
    """

    mode = NEWS

    def __init__(self, session, speech, capture, classifier, store, channel,
                 news, simplifier, responder, on_feedback=None):
        super().__init__(session, speech, capture, classifier, store, channel,
                         steps=(), on_feedback=on_feedback)
        self._news = news
        self._simplifier = simplifier
        self._responder = responder

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _finished(self) -> bool:
        return False

    def _opening_reply(self) -> Reply:
        return Reply.text(NEWS_GREETING)

    def _context(self) -> ClassificationContext:
        return ClassificationContext(
            name=NEWS_CONTEXT,
            article_titles=tuple(a.title for a in self.session.articles),
            settings=self.session.profile,
        )

    async def _advance(self, reply: Reply, token: int) -> None:
        if not reply.spoken.strip():
            reply = Reply.text(NEXT_PROMPT)
        await self._prompt(token, reply)

    async def _perform(self, effect: SideEffect, result: ExecutionResult,
                       token: int) -> Optional[Reply]:
        kind = effect.kind
        if kind == SideEffectKind.FETCH_NEWS:
            return Reply.text(await self._fetch_news(token))
        if kind == SideEffectKind.PLAY_TEXT:
            return self._play_text(effect, result)
        if kind == SideEffectKind.GENERATE_RESPONSE:
            return Reply.text(await self._generate(effect.payload.get("message", "")))
        if kind == SideEffectKind.REFRESH_CONTENT:
            await self._refresh(token)
            return None
        return await super()._perform(effect, result, token)

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    async def _fetch_news(self, token: int) -> str:
        session = self.session
        if NEWS_FEATURE in session.disabled_features:
            return NEWS_UNAVAILABLE

        try:
            result = await self._news.fetch()
        except ConfigurationError as e:
            session.disabled_features.add(NEWS_FEATURE)
            logger.error(
                "news_session: news disabled for session  session=%s  error=%s",
                session.session_id, e.message,
            )
            return f"I can't get the news: {e.message.rstrip('.')}. News is turned off for this session."

        if result.is_fallback:
            logger.warning("news_session: fetch fallback  session=%s  reason=%s",
                           session.session_id, result.reason)
            return NEWS_TROUBLE

        display = await self._build_display(result.value)
        if not session.is_current(token):
            return ""
        session.articles = display

        simplified = session.profile.simplify
        summary = await self._responder.summarize_news(display[:SUMMARY_SIZE], simplified)
        if summary.ok and summary.value:
            return summary.value
        return listing_summary(display)

    def _play_text(self, effect: SideEffect, result: ExecutionResult) -> Reply:
        text = effect.payload["text"]
        if not self.session.tts_available:
            return Reply.text(f"Found article: {text}")
        return Reply(display=result.feedback, spoken=text, degraded=f"Found article: {text}")

    async def _generate(self, message: str) -> str:
        reply = await self._responder.converse(
            message, self.session.articles, self.session.profile.simplify,
        )
        if reply.ok and reply.value:
            return reply.value
        return GENERAL_FALLBACK

    async def _refresh(self, token: int) -> None:
        originals = [a.original for a in self.session.articles if a.original is not None]
        if not originals:
            return
        display = await self._build_display(originals)
        if self.session.is_current(token):
            self.session.articles = display

    async def _build_display(self, articles: Sequence[Article]) -> List[DisplayArticle]:
        simplify = self.session.profile.simplify
        display: List[DisplayArticle] = []
        for article in articles:
            title, description = article.title, article.description
            if simplify:
                title = await self._simplified(title)
                description = await self._simplified(description)
            display.append(DisplayArticle(
                title=title,
                description=description,
                content=article.full_content or article.description,
                original=article,
            ))
        return display

    async def _simplified(self, text: str) -> str:
        if not text.strip():
            return text
        result = await self._simplifier.simplify(text)
        return result.value if result.ok and result.value else text
