"""Retry Handler Utility

Retries one content-generation combination on transient failures.

Features:
- Fixed delay (default) or exponential backoff with jitter
- Respects retry-after hints from rate limit errors in exponential mode
- Cooperative abort check before every attempt
- Structured logging of every retry
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, TypeVar

import aiohttp
import structlog

from truthordare.models.config import RetryConfig
from truthordare.services.ai.exceptions import (
    AuthenticationError,
    ContentFilterError,
    JSONParseError,
    ProviderUnavailableError,
    RateLimitError,
)
from truthordare.utils.exceptions import (
    TerminalGenerationError,
    TransientGenerationError,
)

logger = structlog.get_logger(__name__)


T = TypeVar("T")

RETRYABLE_ERROR_TYPES = (
    RateLimitError,
    ProviderUnavailableError,
    TransientGenerationError,
    asyncio.TimeoutError,
    aiohttp.ClientConnectionError,
)

TERMINAL_ERROR_TYPES = (
    AuthenticationError,
    ContentFilterError,
    JSONParseError,
    TerminalGenerationError,
)

# Fallback for errors raised without a structured type
RETRYABLE_MESSAGE_MARKERS = (
    "rate limit",
    "429",
    "too many requests",
    "quota exceeded",
    "temporarily unavailable",
    "timeout",
    "connection refused",
    "connection reset",
)


def is_retryable_error(error: Optional[BaseException]) -> bool:
    """Decide whether a failed generation attempt is worth repeating.

    Typed errors are classified by type. Anything else is matched
    case-insensitively against a list of transient failure markers.

    Args:
        error: The exception raised by the attempt, or None

    Returns:
        True if the same combination should be attempted again
    """
    if error is None:
        return False
    if isinstance(error, TERMINAL_ERROR_TYPES):
        return False
    if isinstance(error, RETRYABLE_ERROR_TYPES):
        return True

    message = str(error).lower()
    return any(marker in message for marker in RETRYABLE_MESSAGE_MARKERS)


class RetryHandler:
    """Async retry handler with fixed or exponential delays.

    Fixed mode waits ``base_delay_seconds`` between attempts. Exponential
    mode waits ``base * 2^attempt`` with ±jitter_factor randomization,
    capped at ``max_delay_seconds``.
    """

    def __init__(self, config: RetryConfig) -> None:
        self.config = config

    def calculate_delay(
        self, attempt: int, retry_after: Optional[float] = None
    ) -> float:
        """Calculate the wait before the next attempt.

        Args:
            attempt: Attempt that just failed (0-indexed)
            retry_after: Optional retry-after value from a rate limit error

        Returns:
            Delay in seconds
        """
        if self.config.backoff == "fixed":
            return self.config.base_delay_seconds

        if retry_after is not None and retry_after > 0:
            base_delay = retry_after
        else:
            base_delay = self.config.base_delay_seconds * (2**attempt)

        jitter = base_delay * self.config.jitter_factor
        delay = base_delay + random.uniform(-jitter, jitter)

        return max(0.0, min(delay, self.config.max_delay_seconds))

    async def execute(
        self,
        func: Callable[[], Awaitable[T]],
        is_retryable: Callable[[BaseException], bool] = is_retryable_error,
        should_abort: Optional[Callable[[], None]] = None,
        on_retry: Optional[Callable[[int, Exception, float], None]] = None,
    ) -> T:
        """Execute ``func`` with retry logic.

        Args:
            func: Async function to execute
            is_retryable: Predicate deciding whether an error is retried
            should_abort: Called before every attempt; raises to stop early
            on_retry: Optional callback called before each retry with
                     (attempt_number, exception, delay_seconds)

        Returns:
            Result of the first successful attempt

        Raises:
            Exception: The last error when it is not retryable or attempts
                are exhausted, or whatever ``should_abort`` raises
        """
        attempt = 0
        while True:
            if should_abort is not None:
                should_abort()

            try:
                return await func()
            except Exception as e:
                if not is_retryable(e):
                    raise

                if attempt + 1 >= self.config.max_attempts:
                    raise

                retry_after = None
                if isinstance(e, RateLimitError) and e.retry_after is not None:
                    retry_after = e.retry_after

                delay = self.calculate_delay(attempt, retry_after)

                logger.warning(
                    "retry_attempt",
                    attempt=attempt + 1,
                    max_attempts=self.config.max_attempts,
                    error_type=type(e).__name__,
                    error_message=str(e),
                    delay_seconds=delay,
                    retry_after=retry_after,
                )

                if on_retry is not None:
                    on_retry(attempt + 1, e, delay)

                await asyncio.sleep(delay)
                attempt += 1
