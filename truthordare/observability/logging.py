"""Structured logging with correlation ID propagation.

Configures structlog for the whole process:
- Automatic correlation ID injection into all log entries
- JSON output for log aggregation, or colored console output for development
- Log level filtering

Usage:
    from truthordare.observability.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_output=True)

    logger = get_logger("scheduler")
    logger.info("job_started", job="cleanup")
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.typing import EventDict, WrappedLogger

from truthordare.observability.context import get_correlation_id

NOISY_LIBRARY_LOGGERS = ("apscheduler", "sqlalchemy.engine", "aiosqlite", "aiohttp.access")


def add_correlation_id_processor(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds correlation_id to log entries.

    Uses "none" when no correlation ID is set.
    """
    corr_id = get_correlation_id()
    event_dict["correlation_id"] = corr_id if corr_id else "none"
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON. If False, use console format.
        add_timestamp: If True, add ISO timestamp to each log entry.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_correlation_id_processor,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    _configure_library_logging(log_level)


def _configure_library_logging(log_level: int) -> None:
    """Route stdlib logging from APScheduler, SQLAlchemy and aiohttp to stderr.

    Library loggers never go below WARNING unless DEBUG is requested.
    """
    logging.basicConfig(
        level=log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    library_level = log_level if log_level <= logging.DEBUG else max(
        log_level, logging.WARNING
    )
    for name in NOISY_LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def get_logger(
    component: Optional[str] = None,
    **initial_context: Any,
) -> Any:
    """Get a structured logger with optional component context.

    Args:
        component: Optional component name to include in logs
        **initial_context: Additional context to bind to all log entries

    Returns:
        A bound structlog logger
    """
    logger = structlog.get_logger()

    if component:
        logger = logger.bind(component=component)

    if initial_context:
        logger = logger.bind(**initial_context)

    return logger


def bind_context(**context: Any) -> None:
    """Bind context to all subsequent log entries in the current task."""
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Clear all context bound with bind_context."""
    structlog.contextvars.clear_contextvars()
