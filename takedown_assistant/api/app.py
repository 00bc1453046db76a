"""
FastAPI application initialization for the Takedown Letter Assistant.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from takedown_assistant.api.routes import router
from takedown_assistant.config import AppSettings, get_settings
from takedown_assistant.domain.errors import DomainError, RateLimited
from takedown_assistant.observability.middleware import RequestIdAndTimingMiddleware
from takedown_assistant.observability.rate_limiter import setup_rate_limiter
from takedown_assistant.services.anthropic_client import AnthropicClient
from takedown_assistant.services.case_store import CaseStore
from takedown_assistant.services.gap_analyzer import GapAnalyzer
from takedown_assistant.services.pipeline import GenerationPipeline
from takedown_assistant.utils.logging import setup_logging

app_logger = logging.getLogger(__name__)


def build_state(app: FastAPI, settings: AppSettings) -> None:
    """Build core dependencies once and stash them on app.state."""
    client = AnthropicClient.from_settings(settings)
    if not client.is_configured:
        app_logger.warning("ANTHROPIC_API_KEY is not set; AI endpoints will return a configuration error")
    app.state.settings = settings
    app.state.ai_client = client
    app.state.pipeline = GenerationPipeline(
        client,
        gap_analyzer=GapAnalyzer.from_settings(settings),
        max_letter_revisions=settings.max_letter_revisions,
    )
    app.state.case_store = CaseStore(ttl_seconds=settings.session_ttl_seconds)


def _error_response(request: Request, exc: DomainError, settings: AppSettings) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    content: dict = {"error": exc.message, "request_id": request_id}
    if exc.retryable:
        content["retryable"] = True
    if exc.can_proceed:
        content["can_proceed"] = True
    if exc.cause is not None and not settings.production_mode:
        content["details"] = str(exc.cause)
    response = JSONResponse(status_code=exc.status_code, content=content)
    if isinstance(exc, RateLimited) and exc.retry_after:
        response.headers["Retry-After"] = str(exc.retry_after)
    return response


def create_app(settings: AppSettings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_logger.info("Starting Takedown Letter Assistant API (lifespan init)")
        try:
            yield
        finally:
            app_logger.info("Shutting down Takedown Letter Assistant API (lifespan cleanup)")

    app = FastAPI(
        title=settings.app_name,
        description="AI-assisted drafting of content takedown request letters",
        version="1.0.0",
        lifespan=lifespan,
    )
    build_state(app, settings)

    cors_origins = (
        settings.cors_allowed_origins
        if settings.production_mode and settings.cors_allowed_origins
        else settings.cors_allow_origins
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_rate_limiter(app, settings)
    app.include_router(router)
    app.add_middleware(RequestIdAndTimingMiddleware)

    max_bytes = settings.max_request_size_mb * 1024 * 1024

    @app.middleware("http")
    async def validate_request_size_middleware(request: Request, call_next):
        """Validate request body size before processing."""
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > max_bytes:
            request_id = getattr(request.state, "request_id", "unknown")
            app_logger.warning(f"Request too large: {content_length} bytes")
            return JSONResponse(
                status_code=413,
                content={
                    "error": f"Request body too large. Maximum size: {settings.max_request_size_mb}MB",
                    "request_id": request_id,
                },
            )
        return await call_next(request)

    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            app_logger.error(f"{type(exc).__name__}: {exc.message}", exc_info=exc.cause)
        else:
            app_logger.warning(f"{type(exc).__name__}: {exc.message}")
        return _error_response(request, exc, settings)

    @app.exception_handler(Exception)
    async def handle_generic_exception(request: Request, exc: Exception):
        """Handle all other exceptions with user-friendly message."""
        request_id = getattr(request.state, "request_id", "unknown")
        app_logger.error(f"Unhandled exception: {exc}", exc_info=True)
        content = {"error": "An unexpected error occurred", "request_id": request_id}
        if not settings.production_mode:
            content["details"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    @app.get("/api/_healthz")
    async def _healthz(request: Request):
        return {"status": "ok", "ai_configured": request.app.state.ai_client.is_configured}

    return app


def get_app() -> FastAPI:
    """Factory for uvicorn: configures logging, then builds the app."""
    settings = get_settings()
    setup_logging(settings.log_level)
    return create_app(settings)
