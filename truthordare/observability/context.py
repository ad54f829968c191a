"""Correlation ID context management for job tracing.

Every job execution, scheduled or manual, runs under its own correlation
ID so that all log lines emitted by one run can be grouped together. The
ID lives in a ContextVar and therefore follows the asyncio task that runs
the job.

Usage:
    from truthordare.observability.context import correlation_id_context

    with correlation_id_context("cleanup-20260101-000000"):
        await job.run(ctx)
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

_correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(corr_id: Optional[str] = None) -> str:
    """Set the correlation ID for the current context.

    Args:
        corr_id: Optional correlation ID. If None, generates a UUID4.

    Returns:
        The correlation ID that was set.
    """
    if corr_id is None:
        corr_id = str(uuid.uuid4())

    _correlation_id_var.set(corr_id)
    return corr_id


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID, or None if not set."""
    return _correlation_id_var.get()


def clear_correlation_id() -> None:
    """Reset the correlation ID to None."""
    _correlation_id_var.set(None)


@contextmanager
def correlation_id_context(
    corr_id: Optional[str] = None,
) -> Generator[str, None, None]:
    """Scope a correlation ID to a block and restore the previous one on exit.

    Args:
        corr_id: Optional correlation ID. If None, generates a UUID4.

    Yields:
        The correlation ID in effect inside the block.
    """
    if corr_id is None:
        corr_id = str(uuid.uuid4())

    token = _correlation_id_var.set(corr_id)
    try:
        yield corr_id
    finally:
        _correlation_id_var.reset(token)
