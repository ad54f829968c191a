"""Observability: correlation IDs, structured logging, Prometheus metrics.

Usage:
    from truthordare.observability import configure_logging, get_logger

    configure_logging(level="INFO")
    logger = get_logger("scheduler")
"""

from truthordare.observability.context import (
    clear_correlation_id,
    correlation_id_context,
    get_correlation_id,
    set_correlation_id,
)
from truthordare.observability.logging import (
    add_correlation_id_processor,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from truthordare.observability.metrics import (
    AI_REQUEST_DURATION,
    AI_REQUESTS_TOTAL,
    CLEANUP_ROWS_PURGED,
    GENERATION_ATTEMPTS,
    JOB_DURATION,
    JOB_RUNS_TOTAL,
    SCHEDULER_JOBS,
    STORAGE_RECLAIMED_BYTES,
    TASKS_GENERATED,
    get_metrics_content_type,
    get_metrics_text,
)

__all__ = [
    # Context
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    # Logging
    "add_correlation_id_processor",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    # Metrics
    "AI_REQUEST_DURATION",
    "AI_REQUESTS_TOTAL",
    "CLEANUP_ROWS_PURGED",
    "GENERATION_ATTEMPTS",
    "JOB_DURATION",
    "JOB_RUNS_TOTAL",
    "SCHEDULER_JOBS",
    "STORAGE_RECLAIMED_BYTES",
    "TASKS_GENERATED",
    "get_metrics_content_type",
    "get_metrics_text",
]
