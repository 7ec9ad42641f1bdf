"""
core/logging.py
---------------
Structured logging using structlog.
DEBUG=true  → human-readable console output
DEBUG=false → one JSON object per line, tracebacks as structured dicts

Request-scoped keys (request_id, method, path) are bound by the API
middleware through structlog.contextvars and merged into every event.
The Streamlit console shares this module; it passes its own debug flag
because it does not load the backend Settings.
"""

import logging
import sys
from typing import Optional

import structlog

# Chatty third-party loggers, only shown in debug mode
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "passlib")


def configure_logging(debug: Optional[bool] = None) -> None:
    if debug is None:
        from visa_dashboard.core.config import settings
        debug = settings.DEBUG

    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    if not debug:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if debug:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__):
    return structlog.get_logger(name)
