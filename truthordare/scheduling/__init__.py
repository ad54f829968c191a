"""Scheduling: cron scheduler and the recurring background jobs.

Provides:
- JobScheduler: APScheduler wrapper with run-now and graceful drain
- ContentGenerationJob: AI content fan-out with retries
- RetentionCleanupJob: purge of expired soft-deleted rows plus VACUUM

Usage:
    from truthordare.scheduling import build_scheduler

    jobs = build_scheduler(config, database, provider, prompt_loader)
    await jobs.scheduler.serve()
"""

from truthordare.scheduling.cleanup import RetentionCleanupJob
from truthordare.scheduling.generation import ContentGenerationJob
from truthordare.scheduling.jobs import BaseJob, Job, JobContext
from truthordare.scheduling.scheduler import JobScheduler
from truthordare.scheduling.setup import ScheduledJobs, build_scheduler

__all__ = [
    "BaseJob",
    "Job",
    "JobContext",
    "JobScheduler",
    "ContentGenerationJob",
    "RetentionCleanupJob",
    "ScheduledJobs",
    "build_scheduler",
]
