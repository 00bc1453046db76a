"""
Rate limiting for the AI-backed endpoints.

Every follow-up, letter and quality-check request costs an AI call, so those
routes are limited per client IP using slowapi. Read-only routes are not limited.
"""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from takedown_assistant.config import AppSettings, get_settings

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, enabled=get_settings().rate_limit_enabled)
_per_minute = get_settings().rate_limit_per_minute


def ai_request_limit() -> str:
    """Current per-IP limit for AI-backed requests, read from settings."""
    return f"{_per_minute}/minute"


def ai_rate_limit(func):
    """Apply the AI-request limit to an endpoint (the endpoint must accept `request`)."""
    return limiter.limit(ai_request_limit)(func)


def setup_rate_limiter(app, settings: AppSettings | None = None) -> None:
    """Attach the limiter and its 429 handler to the FastAPI app."""
    global _per_minute
    settings = settings or get_settings()
    _per_minute = settings.rate_limit_per_minute
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    if not settings.rate_limit_enabled:
        logger.info("Rate limiting is disabled")
        return

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        request_id = getattr(request.state, "request_id", "unknown")
        logger.warning(
            f"Rate limit exceeded for {get_remote_address(request)}",
            extra={"request_id": request_id},
        )
        retry_after = int(exc.retry_after) if getattr(exc, "retry_after", None) else 60
        response = JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "error": "Too many requests. Please try again later.",
                "request_id": request_id,
                "retryable": True,
            },
        )
        response.headers["Retry-After"] = str(retry_after)
        response.headers["X-RateLimit-Limit"] = str(settings.rate_limit_per_minute)
        response.headers["X-RateLimit-Remaining"] = "0"
        return response

    logger.info(f"Rate limiting enabled: {settings.rate_limit_per_minute} AI requests/min per IP")
