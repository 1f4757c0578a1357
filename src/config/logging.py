"""
Structured logging with structlog.

Every event carries the app name, version and environment, plus whatever
has been bound to the current context (the HTTP middleware binds
``request_id``), so a receipt's store and use case events can be tied back
to the request that triggered them.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from src.config.settings import get_settings

# Stdlib loggers that are chatty below WARNING
QUIET_LOGGERS = ("aiosqlite", "uvicorn.access")


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.environment
    return event_dict


def _renderer(json_output: bool) -> list[Processor]:
    if json_output:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(json_output: bool | None = None) -> None:
    """
    Configure structlog on top of the stdlib root logger.

    Args:
        json_output: Render JSON lines. Falls back to ``LOG_JSON`` and then
            to JSON in production only.
    """
    settings = get_settings()
    if json_output is None:
        json_output = (
            settings.log_json
            if settings.log_json is not None
            else settings.environment == "production"
        )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        *_renderer(json_output),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(**values: Any) -> None:
    """Attach values to every event logged from the current task."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
