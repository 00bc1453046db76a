import json
import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

# Request id of the request currently being served, visible to every logger
_current_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_CONTEXT_FIELDS = (
    ("request_id", "request_id"),
    ("method", "method"),
    ("path", "path"),
    ("status_code", "status"),
    ("duration_ms", "duration_ms"),
    ("session_id", "session_id"),
    ("prompt_kind", "prompt_kind"),
)


def current_request_id() -> str:
    return _current_request_id.get()


class RequestContextFilter(logging.Filter):
    """Stamp every record with the id of the request being served, if any."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = _current_request_id.get()
        return True


class JsonRequestLogFormatter(logging.Formatter):
    """Render logs as single-line JSON including request context if present."""

    def format(self, record: logging.LogRecord) -> str:
        base = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr, key in _CONTEXT_FIELDS:
            if hasattr(record, attr):
                base[key] = getattr(record, attr)
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


class RequestIdAndTimingMiddleware(BaseHTTPMiddleware):
    """Assign request_id, measure latency, and emit structured access log per request."""

    def __init__(self, app, logger_name: str = "access"):
        super().__init__(app)
        self.access_logger = logging.getLogger(f"takedown_assistant.{logger_name}")
        if not any(isinstance(f, RequestContextFilter) for f in self.access_logger.filters):
            self.access_logger.addFilter(RequestContextFilter())

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        token = _current_request_id.set(request_id)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            self._emit_log(
                logging.ERROR,
                f"Unhandled error: {exc}",
                request,
                status_code=500,
                duration_ms=int((time.perf_counter() - start) * 1000),
            )
            raise
        finally:
            _current_request_id.reset(token)

        response.headers["x-request-id"] = request_id
        self._emit_log(
            logging.INFO,
            "request_completed",
            request,
            status_code=response.status_code,
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        return response

    def _emit_log(
        self, level: int, message: str, request: Request, status_code: int, duration_ms: int
    ) -> None:
        extra = {
            "request_id": getattr(request.state, "request_id", "-"),
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": duration_ms,
        }
        session_id = request.path_params.get("session_id") if request.path_params else None
        if session_id:
            extra["session_id"] = session_id
        self.access_logger.log(level, message, extra=extra)
