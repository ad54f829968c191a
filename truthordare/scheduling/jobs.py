"""Job definitions shared by the scheduler and the concrete jobs.

Provides:
- Job: what the scheduler registers (name, schedule, async callable)
- JobContext: per-run handle carrying the shutdown signal
- BaseJob: base class adding correlation IDs, timing and logging

Usage:
    from truthordare.scheduling.jobs import BaseJob

    class NightlyJob(BaseJob):
        async def run(self, ctx):
            ctx.raise_if_cancelled()
            ...

    scheduler.add_job(NightlyJob("nightly", "Nightly work", "0 3 * * *").to_job())
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

import structlog

from truthordare.observability.context import clear_correlation_id, set_correlation_id
from truthordare.utils.exceptions import JobCancelledError

logger = structlog.get_logger()


class JobContext:
    """Per-run context handed to every job function.

    Cancellation is cooperative: the scheduler sets the shared event on
    shutdown and jobs poll it between units of work.
    """

    def __init__(self, job_name: str, cancel_event: Optional[asyncio.Event] = None):
        self.job_name = job_name
        self._cancel_event = cancel_event or asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        self._cancel_event.set()

    def raise_if_cancelled(self) -> None:
        if self._cancel_event.is_set():
            raise JobCancelledError(f"Job '{self.job_name}' cancelled")


JobFunc = Callable[[JobContext], Awaitable[Any]]


@dataclass
class Job:
    """A schedulable unit of work.

    Attributes:
        name: Unique job name
        description: Human readable summary shown by get_jobs()
        schedule: Five-field crontab expression
        fn: Async callable receiving a JobContext
        enabled: Disabled jobs are dropped at registration
    """

    name: str
    description: str
    schedule: str
    fn: JobFunc
    enabled: bool = True


class BaseJob(ABC):
    """Base class for scheduled jobs.

    Provides common functionality:
    - Correlation ID management
    - Error logging
    - Execution timing
    """

    def __init__(self, name: str, description: str, schedule: str, enabled: bool = True):
        self.name = name
        self.description = description
        self.schedule = schedule
        self.enabled = enabled

    async def __call__(self, ctx: JobContext) -> Any:
        """Execute the job with correlation ID and error logging."""
        start = time.time()
        corr_id = set_correlation_id(
            f"{self.name}-{datetime.utcnow().strftime('%Y%m%d-%H%M%S')}"
        )

        logger.info("job_starting", job_name=self.name, correlation_id=corr_id)

        try:
            result = await self.run(ctx)

            logger.info(
                "job_completed",
                job_name=self.name,
                duration_seconds=round(time.time() - start, 2),
                correlation_id=corr_id,
            )
            return result

        except JobCancelledError:
            logger.warning(
                "job_cancelled",
                job_name=self.name,
                duration_seconds=round(time.time() - start, 2),
                correlation_id=corr_id,
            )
            raise

        except Exception as e:
            logger.error(
                "job_failed",
                job_name=self.name,
                error=str(e),
                correlation_id=corr_id,
                exc_info=True,
            )
            raise

        finally:
            clear_correlation_id()

    @abstractmethod
    async def run(self, ctx: JobContext) -> Any:
        """Execute the job logic.

        Returns:
            Job result (implementation-specific)
        """
        pass  # pragma: no cover (abstract method)

    def to_job(self) -> Job:
        return Job(
            name=self.name,
            description=self.description,
            schedule=self.schedule,
            fn=self,
            enabled=self.enabled,
        )
