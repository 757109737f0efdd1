"""
Gateway - News Route
GET /v1/news: cleaned top headlines.

A missing or rejected key surfaces as ConfigurationError (HTTP 500); a
provider outage as TransientServiceError (HTTP 503).
"""

import logging

from newsight.errors import TransientServiceError
from newsight.schemas.news import NewsResponse

logger = logging.getLogger(__name__)


async def handle_news(news, correlation_id: str) -> NewsResponse:
    result = await news.fetch()
    if result.is_fallback:
        logger.warning("news route: fallback  reason=%s  correlation_id=%s",
                       result.reason, correlation_id)
        raise TransientServiceError(f"Failed to fetch news: {result.reason}",
                                    status_code=result.status_code)
    return NewsResponse(articles=result.value)
