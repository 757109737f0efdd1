"""
Gateway - Intent Route
POST /v1/intent {utterance, label_set, context} -> {label, parameter?}

The context is named by ``context.name``; when absent it is inferred from the
label set.  Classification is two-tier, so a label is always returned.
"""

import logging
from typing import Optional

from newsight.app.intent_classifier import (
    CONTEXT_LABELS,
    ClassificationContext,
    IntentClassifier,
)
from newsight.errors import ValidationError, require_text
from newsight.schemas.intent import IntentRequest, IntentResponse

logger = logging.getLogger(__name__)


def context_name_for(request: IntentRequest) -> str:
    name: Optional[str] = request.context.get("name")
    if name is not None:
        if name not in CONTEXT_LABELS:
            raise ValidationError("context.name", f"unknown context {name!r}")
        return name
    if not request.label_set:
        raise ValidationError("label_set", "label_set or context.name is required")
    wanted = {label.upper() for label in request.label_set}
    for candidate, labels in CONTEXT_LABELS.items():
        if set(labels) == wanted:
            return candidate
    raise ValidationError("label_set", "label_set does not match any known context")


async def handle_intent(request: IntentRequest, classifier: IntentClassifier,
                        correlation_id: str) -> IntentResponse:
    utterance = require_text(request.utterance, "utterance")
    titles = request.context.get("article_titles") or []
    context = ClassificationContext(
        name=context_name_for(request),
        article_titles=tuple(str(t) for t in titles),
    )
    result = await classifier.classify(utterance, context)
    logger.info("intent route: classified  context=%s  label=%s  source=%s  correlation_id=%s",
                context.name, result.label, result.source, correlation_id)
    return IntentResponse(label=result.label, parameter=result.parameter, source=result.source)
