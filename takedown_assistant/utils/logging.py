import logging
import os
import sys
from datetime import datetime

from takedown_assistant.observability.middleware import (
    JsonRequestLogFormatter,
    RequestContextFilter,
)

_APP_LOGGERS = (
    "takedown_assistant",
    "takedown_assistant.api",
    "takedown_assistant.services",
    "takedown_assistant.access",
)


def setup_logging(level: str = "INFO", log_dir: str | None = "logs"):
    """Configure logging for the application with JSON console logs.

    File logs keep a human-readable format for local debugging; console logs use JSON.
    Request-scoped fields (request_id, method, path, status, duration_ms) are injected
    by the RequestContextFilter and middleware. Pass log_dir=None to skip the file log.
    """
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JsonRequestLogFormatter())
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.addFilter(RequestContextFilter())
    handlers: list[logging.Handler] = [console_handler]

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_filename = os.path.join(
            log_dir, f"takedown_assistant_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        )
        file_handler = logging.FileHandler(log_filename)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s")
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(RequestContextFilter())
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    # Remove any existing handlers to avoid duplicate logs
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    for logger_name in _APP_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.DEBUG)
        # Records propagate to root; app loggers carry no handlers of their own
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.propagate = True

    return root_logger
