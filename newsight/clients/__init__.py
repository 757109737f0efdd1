"""
NewSight - Remote Capabilities

build_capabilities() turns a NewsightConfig into the set of injected
capabilities.  A missing credential produces the matching Unavailable*
capability once, at construction; nothing downstream re-checks keys.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from newsight.app.resilience import (
    CLASSIFICATION_POLICY,
    CONTENT_POLICY,
    LLM_POLICY,
    SYNTHESIS_POLICY,
    RetryPolicy,
    Sleeper,
)
from newsight.clients.classifier_client import LLMClassifier, RemoteClassifier, UnavailableClassifier
from newsight.clients.llm_client import LLMClient, ResponseGenerator, UnavailableLLM
from newsight.clients.news_client import NewsClient, UnavailableNews
from newsight.clients.simplify_client import SimplifyClient
from newsight.clients.speech_client import SpeechClient, UnavailableSpeech
from newsight.config import NewsightConfig

logger = logging.getLogger(__name__)


@dataclass
class Capabilities:
    speech: Any
    llm: Any
    classifier: Any
    news: Any
    simplifier: SimplifyClient
    responder: ResponseGenerator

    def status(self) -> Dict[str, bool]:
        return {
            "speech": self.speech.available,
            "llm": self.llm.available,
            "classifier": self.classifier.available,
            "news": self.news.available,
        }

    async def aclose(self) -> None:
        for cap in (self.speech, self.llm, self.classifier, self.news):
            await cap.close()


def policy_for(section: Dict[str, Any], base: RetryPolicy,
               max_elapsed_secs: Optional[float]) -> RetryPolicy:
    return base.with_overrides(
        max_attempts=section.get("max_attempts", base.max_attempts),
        base_delay_ms=section.get("base_delay_ms", base.base_delay_ms),
        max_elapsed_secs=max_elapsed_secs,
    )


def build_capabilities(
    config: NewsightConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep: Sleeper = asyncio.sleep,
) -> Capabilities:
    """Construct every remote capability from *config* and the environment."""
    max_elapsed = config.get("resilience").get("max_elapsed_secs")

    speech_cfg = config.get("speech")
    speech_key = config.credential("speech")
    if speech_key:
        speech = SpeechClient(
            speech_key,
            base_url=speech_cfg["base_url"],
            voice_id=speech_cfg["voice_id"],
            model_id=speech_cfg["model_id"],
            timeout=speech_cfg["timeout_secs"],
            policy=policy_for(speech_cfg, SYNTHESIS_POLICY, max_elapsed),
            transport=transport,
            sleep=sleep,
        )
    else:
        logger.warning("capabilities: ELEVENLABS_API_KEY not set, speech runs text-only")
        speech = UnavailableSpeech()

    llm_cfg = config.get("llm")
    llm_key = config.credential("llm")
    if llm_key:
        llm = LLMClient(
            llm_key,
            base_url=llm_cfg["base_url"],
            model=llm_cfg["model"],
            timeout=llm_cfg["timeout_secs"],
            policy=policy_for(llm_cfg, LLM_POLICY, max_elapsed),
            transport=transport,
            sleep=sleep,
        )
    else:
        logger.warning("capabilities: OPENAI_API_KEY not set, using local classification")
        llm = UnavailableLLM()

    cls_cfg = config.get("classifier")
    if cls_cfg.get("url"):
        classifier = RemoteClassifier(
            cls_cfg["url"],
            timeout=cls_cfg["timeout_secs"],
            policy=policy_for(cls_cfg, CLASSIFICATION_POLICY, max_elapsed),
            transport=transport,
            sleep=sleep,
        )
    elif llm.available:
        classifier = LLMClassifier(llm)
    else:
        classifier = UnavailableClassifier()

    news_cfg = config.get("news")
    news_key = config.credential("news")
    if news_key:
        news = NewsClient(
            news_key,
            base_url=news_cfg["base_url"],
            country=news_cfg["country"],
            page_size=news_cfg["page_size"],
            max_articles=news_cfg["max_articles"],
            timeout=news_cfg["timeout_secs"],
            policy=policy_for(news_cfg, CONTENT_POLICY, max_elapsed),
            transport=transport,
            sleep=sleep,
        )
    else:
        logger.warning("capabilities: NEWS_API_KEY not set, news is unavailable")
        news = UnavailableNews()

    simplify_cfg = config.get("simplify")
    caps = Capabilities(
        speech=speech,
        llm=llm,
        classifier=classifier,
        news=news,
        simplifier=SimplifyClient(llm, max_tokens=simplify_cfg["max_tokens"]),
        responder=ResponseGenerator(llm),
    )
    logger.info("capabilities: built  status=%s", caps.status())
    return caps


__all__ = [
    "Capabilities",
    "build_capabilities",
    "policy_for",
    "SpeechClient",
    "UnavailableSpeech",
    "LLMClient",
    "UnavailableLLM",
    "ResponseGenerator",
    "RemoteClassifier",
    "LLMClassifier",
    "UnavailableClassifier",
    "NewsClient",
    "UnavailableNews",
    "SimplifyClient",
]
