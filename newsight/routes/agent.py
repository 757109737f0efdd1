"""
Gateway - Agent Route
POST /v1/agent: one-shot voice command.

Classifies the message against the news vocabulary, builds the reply text
(news summary, canned action confirmation, or an open-ended answer), and
attaches synthesised audio when speech is available.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from newsight.app.actions import Action, ActionKind
from newsight.app.intent_classifier import NEWS_CONTEXT, ClassificationContext, IntentClassifier
from newsight.app.news_session import (
    GENERAL_FALLBACK,
    NEWS_TROUBLE,
    SUMMARY_SIZE,
    listing_summary,
)
from newsight.clients import Capabilities
from newsight.errors import ConfigurationError, require_text
from newsight.routes.tts import to_data_url
from newsight.schemas.agent import AgentAction, AgentRequest, AgentResponse
from newsight.schemas.news import Article, DisplayArticle
from newsight.schemas.profile import Settings

logger = logging.getLogger(__name__)

CANNED_REPLIES = {
    ActionKind.ZOOM_IN: ("I'm making the text bigger for you. The page should now be "
                         "easier to read with larger text."),
    ActionKind.ZOOM_OUT: "I'm making the text smaller for you.",
    ActionKind.HIGH_CONTRAST: ("I'm enabling high contrast mode for you. The page now has "
                               "white text on a black background for better visibility."),
    ActionKind.NORMAL_CONTRAST: "I'm returning to normal contrast mode with the regular color scheme.",
    ActionKind.SIMPLIFY_TEXT: ("I can help simplify complex text to make it easier to read. "
                               "Articles will use simpler words and shorter sentences."),
    ActionKind.STOP_AUDIO: "I'm stopping all audio playback now.",
}


def _read_reply(action: Action) -> str:
    what = "the full content of article" if action.full_content else "article"
    if action.identifier:
        return f"I'll read {what} {action.identifier} for you now."
    if action.full_content:
        return "I'll read the full content of the selected article for you now."
    return "I'll read the selected article for you now."


async def _display(articles: List[Article], simplify: bool, caps: Capabilities) -> List[DisplayArticle]:
    out: List[DisplayArticle] = []
    for a in articles:
        title, description = a.title, a.description
        if simplify:
            t = await caps.simplifier.simplify(title)
            d = await caps.simplifier.simplify(description)
            title = t.value if t.ok else title
            description = d.value if d.ok else description
        out.append(DisplayArticle(title=title, description=description,
                                  content=a.full_content or a.description, original=a))
    return out


async def _news_reply(simplify: bool, caps: Capabilities) -> Tuple[str, Optional[Dict[str, Any]]]:
    try:
        result = await caps.news.fetch()
    except ConfigurationError as e:
        return f"I can't get the news: {e.message}", None
    if result.is_fallback:
        return NEWS_TROUBLE, None

    display = await _display(result.value[:SUMMARY_SIZE], simplify, caps)
    summary = await caps.responder.summarize_news(display, simplify)
    text = summary.value if summary.ok and summary.value else listing_summary(display)
    return text, {"articles": [a.model_dump() for a in result.value]}


async def handle_agent(request: AgentRequest, classifier: IntentClassifier,
                       caps: Capabilities, correlation_id: str) -> AgentResponse:
    message = require_text(request.message, "message")
    context = ClassificationContext(
        name=NEWS_CONTEXT,
        article_titles=tuple(a.title for a in request.articles),
        settings=Settings(simplify=request.simplify),
    )
    action = await classifier.classify_action(message, context)
    data: Optional[Dict[str, Any]] = None

    if action.kind == ActionKind.GET_NEWS:
        text, data = await _news_reply(request.simplify, caps)
    elif action.kind == ActionKind.READ_ARTICLE:
        text = _read_reply(action)
        data = {"article_identifier": action.identifier, "full_content": action.full_content}
    elif action.kind == ActionKind.GENERAL:
        reply = await caps.responder.converse(message, request.articles, request.simplify)
        text = reply.value if reply.ok and reply.value else GENERAL_FALLBACK
    else:
        text = CANNED_REPLIES[action.kind]
        if action.kind == ActionKind.SIMPLIFY_TEXT:
            data = {"enabled": action.enabled}

    audio_url = None
    speech = await caps.speech.synthesize(text)
    if speech.ok:
        audio_url = to_data_url(speech.value)

    logger.info("agent route: done  action=%s  tts=%s  correlation_id=%s",
                action.kind.value, speech.ok, correlation_id)
    return AgentResponse(
        response=text,
        audio_url=audio_url,
        conversation_id=request.conversation_id or f"conv_{uuid.uuid4().hex[:12]}",
        action=None if action.kind == ActionKind.GENERAL else AgentAction(type=action.kind.value, data=data),
        tts_available=speech.ok,
    )
