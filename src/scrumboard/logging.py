"""Structured logging setup.

structlog renders the events; stdlib logging owns the handlers (stdout or a
rotating file). A per-request correlation id is kept in a context variable
and added to every event emitted while the request is being handled.

    >>> setup_logging(LoggingSettings(format="console"))
    >>> logger = get_logger(__name__)
    >>> logger.info("sprint_started", sprint_id=3, project_id=1)
"""

from __future__ import annotations

import contextvars
import logging
import logging.handlers
import sys
from typing import Any, Optional

import structlog

from scrumboard.config import LoggingSettings

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def add_correlation_id(logger: Any, method_name: str, event_dict: dict) -> dict:
    """structlog processor adding the current correlation id, if any"""
    correlation_id = _correlation_id.get()
    if correlation_id is not None:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def set_correlation_id(correlation_id: Optional[str]) -> None:
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def setup_logging(settings: LoggingSettings) -> None:
    """Configure stdlib handlers and the structlog processor chain"""
    log_level = getattr(logging, settings.level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if settings.file is not None:
        settings.file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            filename=settings.file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler(sys.stdout)

    handler.setLevel(log_level)
    root_logger.addHandler(handler)

    if settings.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, usually ``get_logger(__name__)``"""
    return structlog.get_logger(name)
