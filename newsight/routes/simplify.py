"""
Gateway - Simplify Route
POST /v1/simplify: LLM rewrite, or the local word-substitution pass when the
LLM is unavailable or failing.
"""

import logging

from newsight.clients.simplify_client import SimplifyClient
from newsight.errors import require_text
from newsight.schemas.agent import SimplifyRequest, SimplifyResponse

logger = logging.getLogger(__name__)


async def handle_simplify(request: SimplifyRequest, simplifier: SimplifyClient,
                          correlation_id: str) -> SimplifyResponse:
    text = require_text(request.text)
    simplified, used_fallback = await simplifier.simplify_or_local(text)
    if used_fallback:
        logger.info("simplify route: local fallback  correlation_id=%s", correlation_id)
    return SimplifyResponse(simplified=simplified, fallback=used_fallback)
