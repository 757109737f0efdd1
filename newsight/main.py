"""
NewSight Gateway Service
FastAPI application exposing the speech, intent, news, simplify and agent
endpoints the voice dialogue consumes.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from newsight.app.intent_classifier import IntentClassifier
from newsight.clients import Capabilities, build_capabilities
from newsight.clients.classifier_client import LLMClassifier
from newsight.config import NewsightConfig
from newsight.errors import ConfigurationError, TransientServiceError, ValidationError
from newsight.log_redaction import configure_logging
from newsight.routes.agent import handle_agent
from newsight.routes.intent import handle_intent
from newsight.routes.news import handle_news
from newsight.routes.simplify import handle_simplify
from newsight.routes.tts import handle_tts
from newsight.schemas.agent import AgentRequest, AgentResponse, SimplifyRequest, SimplifyResponse
from newsight.schemas.intent import IntentRequest, IntentResponse
from newsight.schemas.news import NewsResponse
from newsight.schemas.speech import TTSRequest, TTSResponse
from newsight.version import NEWSIGHT_CONTRACT, NEWSIGHT_VERSION

logger = logging.getLogger(__name__)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracing."""
    return f"req_{uuid.uuid4().hex[:12]}"


def _correlation_id(request: Request) -> str:
    return request.headers.get("X-Correlation-ID", generate_correlation_id())


def gateway_classifier(caps: Capabilities) -> IntentClassifier:
    """The gateway is the classification service, so it classifies through the LLM."""
    return IntentClassifier(LLMClassifier(caps.llm) if caps.llm.available else None)


def create_app(
    config: Optional[NewsightConfig] = None,
    capabilities: Optional[Capabilities] = None,
) -> FastAPI:
    """
    Build the gateway app.

    Args:
        config: Loaded configuration; defaults plus environment when omitted.
        capabilities: Pre-built capabilities (tests inject fakes); built from
                      *config* at startup when omitted.
    """

    @asynccontextmanager
    async def _lifespan(a: FastAPI):
        cfg = config or NewsightConfig()
        configure_logging(cfg.get("logging").get("level", "INFO"))
        caps = capabilities or build_capabilities(cfg)
        a.state.caps = caps
        a.state.classifier = gateway_classifier(caps)
        logger.info("gateway: startup  version=%s  capabilities=%s",
                    NEWSIGHT_VERSION, caps.status())

        yield  # ── app is running ──

        if capabilities is None:
            await caps.aclose()
        logger.info("gateway: shutdown complete")

    app = FastAPI(
        title="NewSight Gateway",
        description="Speech, intent, news and simplification endpoints for the voice dialogue",
        version=NEWSIGHT_VERSION,
        lifespan=_lifespan,
    )

    # ========================================================================
    # Error mapping
    # ========================================================================

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": exc.message, "field": exc.field})

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Malformed request body"})

    @app.exception_handler(ConfigurationError)
    async def _configuration_error(request: Request, exc: ConfigurationError):
        logger.error("gateway: configuration error  feature=%s  message=%s",
                     exc.feature, exc.message)
        return JSONResponse(status_code=500, content={"error": exc.message, "feature": exc.feature})

    @app.exception_handler(TransientServiceError)
    async def _transient_error(request: Request, exc: TransientServiceError):
        return JSONResponse(status_code=503, content={"error": exc.message})

    # ========================================================================
    # Endpoints
    # ========================================================================

    @app.get("/healthz")
    async def healthz(request: Request):
        """Health check with per-capability availability."""
        return {
            "ok": True,
            "service": "newsight-gateway",
            "version": NEWSIGHT_VERSION,
            "contract": NEWSIGHT_CONTRACT,
            "capabilities": request.app.state.caps.status(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.post("/v1/tts", response_model=TTSResponse)
    async def tts(body: TTSRequest, request: Request):
        return await handle_tts(body, request.app.state.caps.speech, _correlation_id(request))

    @app.post("/v1/intent", response_model=IntentResponse)
    async def intent(body: IntentRequest, request: Request):
        return await handle_intent(body, request.app.state.classifier, _correlation_id(request))

    @app.get("/v1/news", response_model=NewsResponse)
    async def news(request: Request):
        return await handle_news(request.app.state.caps.news, _correlation_id(request))

    @app.post("/v1/simplify", response_model=SimplifyResponse)
    async def simplify(body: SimplifyRequest, request: Request):
        return await handle_simplify(body, request.app.state.caps.simplifier,
                                     _correlation_id(request))

    @app.post("/v1/agent", response_model=AgentResponse)
    async def agent(body: AgentRequest, request: Request):
        return await handle_agent(body, request.app.state.classifier,
                                  request.app.state.caps, _correlation_id(request))

    return app


app = create_app()
