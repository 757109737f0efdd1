"""
NewSight - News Client
HTTP client for the NewsAPI top-headlines endpoint.

News is essential: a missing key or a rejected request (non-retryable 4xx)
raises ConfigurationError.  Server errors and transport failures are retried
and end in a fallback result; so does a response with no usable articles.
"""

import asyncio
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

import httpx

from newsight.app.resilience import CONTENT_POLICY, RemoteCallResult, RetryPolicy, Sleeper, call
from newsight.errors import ConfigurationError
from newsight.schemas.news import Article

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://newsapi.org"
DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_ARTICLES = 5
MIN_CONTENT_LENGTH = 50
REMOVED = "[Removed]"
MISSING_KEY_MESSAGE = "News API key not configured. Set NEWS_API_KEY."

_TRUNCATION_MARKERS = (
    re.compile(r"\[\+\d+\s*chars?\]$"),
    re.compile(r"\[\+\d+\s*characters?\]$"),
    re.compile(r"\.{3,}$"),
    re.compile(r"…$"),
)


def clean_content(content: Optional[str], description: str) -> str:
    """Strip provider truncation markers; short content falls back to the description."""
    text = ""
    if content and content != REMOVED:
        text = content.strip()
        for marker in _TRUNCATION_MARKERS:
            text = marker.sub("", text).strip()
    if len(text) < MIN_CONTENT_LENGTH:
        return description
    return text


def clean_articles(raw: Iterable[Dict[str, Any]], max_articles: int = DEFAULT_MAX_ARTICLES) -> List[Article]:
    """Filter and normalise provider articles, preserving order, capped at *max_articles*."""
    articles: List[Article] = []
    for item in raw:
        if len(articles) >= max_articles:
            break
        if not isinstance(item, dict):
            continue
        title = item.get("title")
        description = item.get("description")
        if not title or not description or title == REMOVED:
            continue
        source = item.get("source") or {}
        articles.append(Article(
            title=title,
            description=description,
            url=item.get("url") or "",
            source=(source.get("name") or "") if isinstance(source, dict) else str(source),
            published_at=item.get("publishedAt") or "",
            full_content=clean_content(item.get("content"), description),
        ))
    return articles


class NewsClient:
    """
    HTTP client for NewsAPI top headlines.
    """

    available = True

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        country: str = "us",
        page_size: int = 10,
        max_articles: int = DEFAULT_MAX_ARTICLES,
        timeout: float = DEFAULT_TIMEOUT,
        policy: RetryPolicy = CONTENT_POLICY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.country = country
        self.page_size = page_size
        self.max_articles = max_articles
        self.policy = policy
        self._sleep = sleep
        self._api_key = api_key
        self.client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    def _decode(self, response: httpx.Response) -> List[Article]:
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError("response body is not an object")
        if data.get("status", "ok") != "ok":
            raise ValueError(f"provider status {data.get('status')!r}")
        articles = clean_articles(data.get("articles") or [], self.max_articles)
        if not articles:
            raise ValueError("no valid articles in response")
        return articles

    async def fetch(self) -> RemoteCallResult[List[Article]]:
        """
        Fetch and clean top headlines.

        Returns:
            success(list of Article) or fallback(reason)

        Raises:
            ConfigurationError: If the provider rejects the request (bad key).
        """
        url = f"{self.base_url}/v2/top-headlines"
        params = {"country": self.country, "pageSize": self.page_size}
        headers = {"X-Api-Key": self._api_key}
        result = await call(
            lambda: self.client.get(url, params=params, headers=headers),
            self.policy,
            decode=self._decode,
            name="news",
            sleep=self._sleep,
        )
        if result.ok:
            logger.info("news_client: fetched  articles=%d  attempts=%d",
                        len(result.value), result.attempts)
        return result

    async def close(self):
        await self.client.aclose()


class UnavailableNews:
    """News capability used when NEWS_API_KEY is not configured."""

    available = False

    async def fetch(self) -> RemoteCallResult[List[Article]]:
        raise ConfigurationError("news", MISSING_KEY_MESSAGE)

    async def close(self):
        pass
