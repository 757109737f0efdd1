"""Unit tests for build_capabilities — credentials decide which capabilities exist."""

import httpx
import pytest

from newsight.clients import build_capabilities, policy_for
from newsight.clients.classifier_client import LLMClassifier, RemoteClassifier, UnavailableClassifier
from newsight.clients.llm_client import LLMClient, UnavailableLLM
from newsight.clients.news_client import NewsClient, UnavailableNews
from newsight.clients.speech_client import SpeechClient, UnavailableSpeech
from newsight.app.resilience import CONTENT_POLICY
from newsight.config import NewsightConfig

from fakes import RecordingSleeper

ALL_KEYS = {
    "ELEVENLABS_API_KEY": "sk_0123456789abcdef0123456789abcdef",
    "OPENAI_API_KEY": "sk-test",
    "NEWS_API_KEY": "news-key",
}


def _transport():
    return httpx.MockTransport(lambda request: httpx.Response(200, json={}))


class TestBuildCapabilities:
    @pytest.mark.asyncio
    async def test_no_credentials(self):
        caps = build_capabilities(NewsightConfig(environ={}))
        assert isinstance(caps.speech, UnavailableSpeech)
        assert isinstance(caps.llm, UnavailableLLM)
        assert isinstance(caps.news, UnavailableNews)
        assert isinstance(caps.classifier, UnavailableClassifier)
        assert caps.status() == {"speech": False, "llm": False, "classifier": False, "news": False}
        assert not caps.simplifier.available
        await caps.aclose()

    @pytest.mark.asyncio
    async def test_all_credentials(self):
        caps = build_capabilities(NewsightConfig(environ=ALL_KEYS), transport=_transport(),
                                  sleep=RecordingSleeper())
        assert isinstance(caps.speech, SpeechClient)
        assert isinstance(caps.llm, LLMClient)
        assert isinstance(caps.news, NewsClient)
        assert isinstance(caps.classifier, LLMClassifier)
        assert all(caps.status().values())
        await caps.aclose()

    @pytest.mark.asyncio
    async def test_dedicated_classifier_url_wins(self):
        env = dict(ALL_KEYS, NEWSIGHT_CLASSIFIER__URL="https://classify.test/v1/intent")
        caps = build_capabilities(NewsightConfig(environ=env), transport=_transport())
        assert isinstance(caps.classifier, RemoteClassifier)
        assert caps.classifier.url == "https://classify.test/v1/intent"
        await caps.aclose()

    @pytest.mark.asyncio
    async def test_config_overrides_policy(self):
        env = dict(ALL_KEYS, NEWSIGHT_NEWS__MAX_ATTEMPTS="5",
                   NEWSIGHT_RESILIENCE__MAX_ELAPSED_SECS="10")
        caps = build_capabilities(NewsightConfig(environ=env), transport=_transport())
        assert caps.news.policy.max_attempts == 5
        assert caps.news.policy.max_elapsed_secs == 10.0
        assert caps.news.policy.essential is True
        await caps.aclose()


def test_policy_for_defaults_to_base():
    policy = policy_for({}, CONTENT_POLICY, None)
    assert policy.max_attempts == CONTENT_POLICY.max_attempts
    assert policy.max_elapsed_secs is None
