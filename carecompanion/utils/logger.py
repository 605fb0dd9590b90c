"""
Structured logging setup for the CareCompanion API.

All modules log through ``structlog.get_logger(__name__)`` with key/value
context. ``setup_logging`` wires structlog and the standard library together
so uvicorn and SQLAlchemy records share one renderer, and request-scoped
values (correlation id, user id) bound through ``structlog.contextvars`` are
attached to every event emitted while handling a request.
"""

import logging
import sys
from typing import Any, Dict, Optional

import structlog

from carecompanion.core.config import get_settings

# Keys that must never reach log output verbatim
SENSITIVE_KEYS = ("password", "token", "secret", "authorization", "body")


def _mask_sensitive(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    for key in list(event_dict):
        if any(marker in key.lower() for marker in SENSITIVE_KEYS):
            event_dict[key] = "***"
    return event_dict


def setup_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """Configure structlog and the root stdlib logger."""
    settings = get_settings()
    level = (level or settings.LOG_LEVEL).upper()
    if json_logs is None:
        json_logs = settings.use_json_logs

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _mask_sensitive,
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level, logging.INFO))

    # Quiet noisy libraries unless debugging
    for noisy in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_log_level() -> str:
    """Return the effective root log level name."""
    return logging.getLevelName(logging.getLogger().getEffectiveLevel())


def bind_request_context(**values: Any) -> None:
    """Bind values to every log event for the rest of the current request."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "setup_logging",
    "get_log_level",
    "bind_request_context",
    "clear_request_context",
]
