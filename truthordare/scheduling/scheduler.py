"""APScheduler wrapper for recurring background jobs.

Provides:
- Cron registration with validation before anything is stored
- Read-only job snapshots (next/last run, status, last error)
- Manual "run now" that awaits the job and returns its result
- Cooperative cancellation and graceful drain on shutdown
- Integration with Prometheus metrics

Usage:
    scheduler = JobScheduler(timezone="UTC")
    scheduler.add_job(cleanup_job.to_job())

    scheduler.start()
    ...
    await scheduler.stop(timeout=30)
"""

import asyncio
import signal
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

import structlog
from apscheduler.events import EVENT_JOB_MISSED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from truthordare.models.scheduler import JobInfo, JobStatus
from truthordare.observability.metrics import JOB_DURATION, JOB_RUNS_TOTAL, SCHEDULER_JOBS
from truthordare.scheduling.jobs import Job, JobContext
from truthordare.utils.exceptions import (
    DuplicateJobError,
    InvalidScheduleError,
    JobAlreadyRunningError,
    JobCancelledError,
    JobNotFoundError,
)

logger = structlog.get_logger()


# Crontab order: Sunday is 0 (and 7). APScheduler numbers weekdays from Monday.
CRONTAB_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def _crontab_weekday(value: str) -> int:
    name = value.lower()
    if name in CRONTAB_WEEKDAYS:
        return CRONTAB_WEEKDAYS.index(name)
    day = int(value)
    if not 0 <= day <= 7:
        raise ValueError(f"day of week {value!r} is outside 0-7")
    return day


def convert_day_of_week(field: str) -> str:
    """Translate a crontab day-of-week field into APScheduler weekday names.

    Accepts numbers (0 and 7 are Sunday), names, ranges, lists and steps,
    e.g. ``1-5``, ``0,6`` or ``*/2``.
    """
    if field in ("*", "?"):
        return "*"

    days = set()
    for part in field.split(","):
        base, has_step, step_text = part.partition("/")
        step = int(step_text) if has_step else 1
        if step < 1:
            raise ValueError(f"step must be positive in {part!r}")

        if base in ("*", "?"):
            first, last = 0, 6
        elif "-" in base:
            start, _, end = base.partition("-")
            first, last = _crontab_weekday(start), _crontab_weekday(end)
        else:
            first = _crontab_weekday(base)
            last = 6 if has_step else first

        if first > last:
            raise ValueError(f"day of week range {part!r} runs backwards")
        days.update(day % 7 for day in range(first, last + 1, step))

    if len(days) == 7:
        return "*"
    return ",".join(CRONTAB_WEEKDAYS[day] for day in sorted(days))


def crontab_trigger(expression: str, timezone: Any = None) -> CronTrigger:
    """Build a CronTrigger from a standard five-field crontab expression.

    Raises:
        ValueError: If the expression does not parse
    """
    fields = expression.split()
    if len(fields) != 5:
        raise ValueError(f"wrong number of fields; got {len(fields)}, expected 5")

    minute, hour, day, month, day_of_week = fields
    return CronTrigger(
        minute=minute,
        hour=hour,
        day="*" if day == "?" else day,
        month=month,
        day_of_week=convert_day_of_week(day_of_week),
        timezone=timezone,
    )


@dataclass
class _JobEntry:
    job: Job
    trigger: CronTrigger
    last_run_at: Optional[datetime] = None
    last_status: JobStatus = JobStatus.NEVER_RUN
    last_error: Optional[str] = None
    run_count: int = 0
    skipped_count: int = 0
    running: bool = False


@dataclass
class _Registry:
    entries: Dict[str, _JobEntry] = field(default_factory=dict)

    def get(self, name: str) -> _JobEntry:
        entry = self.entries.get(name)
        if entry is None:
            raise JobNotFoundError(name)
        return entry


class JobScheduler:
    """Async cron scheduler for named jobs.

    Wraps APScheduler's AsyncIOScheduler with:
    - A registry of per-job runtime state
    - An "already running" guard per job
    - Graceful shutdown that drains in-flight runs
    """

    def __init__(
        self,
        timezone: str = "UTC",
        misfire_grace_time: int = 300,
        enabled: bool = True,
        shutdown_timeout: float = 30.0,
    ):
        """Initialize the scheduler.

        Args:
            timezone: Timezone cron expressions are evaluated in
            misfire_grace_time: Grace time for late triggers (seconds)
            enabled: When False, start() is a no-op; manual runs still work
            shutdown_timeout: Default drain timeout for stop() (seconds)
        """
        self.scheduler = AsyncIOScheduler(
            timezone=timezone,
            job_defaults={
                # Overlap is decided by the running guard in _on_trigger
                "max_instances": 2,
                "coalesce": True,
                "misfire_grace_time": misfire_grace_time,
            },
        )
        self.enabled = enabled
        self.shutdown_timeout = shutdown_timeout

        self._registry = _Registry()
        self._in_flight: Set["asyncio.Task[Any]"] = set()
        self._cancel_event: Optional[asyncio.Event] = None
        self._stopped: Optional[asyncio.Event] = None
        self._running = False

        self.scheduler.add_listener(self._on_job_missed, EVENT_JOB_MISSED)

        logger.info("scheduler_initialized", timezone=timezone, enabled=enabled)

    def add_job(self, job: Job) -> None:
        """Register a job on its cron schedule.

        Disabled jobs are logged and dropped.

        Raises:
            InvalidScheduleError: If the schedule does not parse
            DuplicateJobError: If a job with the same name is registered
        """
        try:
            trigger = crontab_trigger(job.schedule, timezone=self.scheduler.timezone)
        except (ValueError, TypeError) as e:
            raise InvalidScheduleError(job.name, job.schedule, str(e))

        if not job.enabled:
            logger.info("job_disabled", job_name=job.name)
            return

        if job.name in self._registry.entries:
            raise DuplicateJobError(job.name)

        self.scheduler.add_job(
            self._on_trigger,
            trigger=trigger,
            args=[job.name],
            id=job.name,
            name=job.name,
        )
        self._registry.entries[job.name] = _JobEntry(job=job, trigger=trigger)

        next_run = self._next_run(trigger)
        logger.info(
            "job_added",
            job_name=job.name,
            schedule=job.schedule,
            next_run=str(next_run) if next_run else "not scheduled",
        )
        self._update_metrics()

    def get_jobs(self) -> List[JobInfo]:
        """Snapshot of every registered job, in registration order."""
        return [
            JobInfo(
                name=entry.job.name,
                description=entry.job.description,
                schedule=entry.job.schedule,
                enabled=entry.job.enabled,
                next_run_at=self._next_run(entry.trigger),
                last_run_at=entry.last_run_at,
                last_status=entry.last_status,
                last_error=entry.last_error,
                run_count=entry.run_count,
                skipped_count=entry.skipped_count,
                is_running=entry.running,
            )
            for entry in self._registry.entries.values()
        ]

    async def run_job_now(self, name: str) -> Any:
        """Run a job immediately and wait for it to finish.

        Returns:
            Whatever the job function returned

        Raises:
            JobNotFoundError: If no job has this name
            JobAlreadyRunningError: If the job is currently executing
            Exception: Any error raised by the job itself
        """
        entry = self._registry.get(name)
        if entry.running:
            raise JobAlreadyRunningError(name)

        logger.info("job_triggered", job_name=name, source="manual")
        task = self._launch(entry, self._execute(entry))
        return await task

    def start(self) -> None:
        """Start firing triggers. Must be called with a running event loop."""
        if not self.enabled:
            logger.info("scheduler_disabled")
            return
        if self._running:
            logger.warning("scheduler_already_running")
            return

        # Runs started before start() share this event, so it is reused
        self._cancel_event_for_runs().clear()
        self._stopped = asyncio.Event()
        self.scheduler.start()
        self._running = True

        logger.info("scheduler_started", jobs=len(self._registry.entries))
        self._update_metrics()

    def stop(self, timeout: Optional[float] = None) -> "asyncio.Task[bool]":
        """Stop firing triggers and signal cancellation to running jobs.

        Returns immediately. The returned task completes once every
        in-flight run has finished or ``timeout`` elapses; its result is
        True when everything drained.
        """
        timeout = self.shutdown_timeout if timeout is None else timeout

        logger.info("scheduler_stopping", in_flight=len(self._in_flight))

        self._cancel_event_for_runs().set()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self._running = False

        return asyncio.get_running_loop().create_task(
            self._drain(set(self._in_flight), timeout)
        )

    async def serve(self) -> None:
        """Run until SIGINT/SIGTERM, then stop and drain."""
        self.start()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._signal_handler)

        try:
            if self._stopped is None:
                self._stopped = asyncio.Event()
            await self._stopped.wait()
        finally:
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.remove_signal_handler(sig)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def running_jobs(self) -> List[str]:
        return [n for n, e in self._registry.entries.items() if e.running]

    def _cancel_event_for_runs(self) -> asyncio.Event:
        if self._cancel_event is None:
            self._cancel_event = asyncio.Event()
        return self._cancel_event

    def _next_run(self, trigger: CronTrigger) -> Optional[datetime]:
        return trigger.get_next_fire_time(None, datetime.now(self.scheduler.timezone))

    def _launch(self, entry: _JobEntry, coro: Any) -> "asyncio.Task[Any]":
        # Marked synchronously so a second trigger in the same tick sees it
        entry.running = True
        entry.last_run_at = datetime.now(timezone.utc)
        entry.last_status = JobStatus.RUNNING
        entry.run_count += 1
        self._update_metrics()

        task = asyncio.get_running_loop().create_task(coro)
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _on_trigger(self, name: str) -> None:
        """APScheduler entry point. Detaches the run into its own task."""
        entry = self._registry.entries.get(name)
        if entry is None:
            return

        if entry.running:
            entry.skipped_count += 1
            JOB_RUNS_TOTAL.labels(job=name, status="skipped").inc()
            logger.warning("job_skipped", job_name=name, reason="already_running")
            return

        logger.info("job_triggered", job_name=name, source="schedule")
        self._launch(entry, self._run_scheduled(entry))

    async def _run_scheduled(self, entry: _JobEntry) -> None:
        try:
            await self._execute(entry)
        except JobCancelledError:
            logger.info("scheduled_run_cancelled", job_name=entry.job.name)
        except Exception as e:
            # Already recorded on the entry; keep the trigger loop alive
            logger.error("scheduled_run_failed", job_name=entry.job.name, error=str(e))

    async def _execute(self, entry: _JobEntry) -> Any:
        name = entry.job.name
        ctx = JobContext(name, self._cancel_event_for_runs())

        start = time.time()
        try:
            result = await entry.job.fn(ctx)
        except JobCancelledError as e:
            entry.last_status = JobStatus.CANCELLED
            entry.last_error = str(e)
            JOB_RUNS_TOTAL.labels(job=name, status="cancelled").inc()
            raise
        except Exception as e:
            entry.last_status = JobStatus.FAILED
            entry.last_error = str(e)
            JOB_RUNS_TOTAL.labels(job=name, status="failed").inc()
            raise
        else:
            entry.last_status = JobStatus.SUCCEEDED
            entry.last_error = None
            JOB_RUNS_TOTAL.labels(job=name, status="succeeded").inc()
            return result
        finally:
            JOB_DURATION.labels(job=name).observe(time.time() - start)
            entry.running = False
            self._update_metrics()

    async def _drain(self, tasks: Set["asyncio.Task[Any]"], timeout: float) -> bool:
        drained = True
        if tasks:
            _, pending = await asyncio.wait(tasks, timeout=timeout)
            drained = not pending
            if pending:
                logger.warning(
                    "scheduler_drain_timeout",
                    timeout_seconds=timeout,
                    still_running=len(pending),
                )

        if self._stopped is not None:
            self._stopped.set()

        logger.info("scheduler_stopped", drained=drained)
        return drained

    def _signal_handler(self) -> None:
        logger.info("shutdown_signal_received")
        self.stop()

    def _on_job_missed(self, event: JobExecutionEvent) -> None:
        logger.warning(
            "job_missed",
            job_name=event.job_id,
            scheduled_run_time=str(event.scheduled_run_time),
        )

    def _update_metrics(self) -> None:
        running = sum(1 for e in self._registry.entries.values() if e.running)
        SCHEDULER_JOBS.labels(state="running").set(running)
        SCHEDULER_JOBS.labels(state="idle").set(len(self._registry.entries) - running)
