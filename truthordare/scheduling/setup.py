"""Scheduler wiring for the application host."""

from dataclasses import dataclass

import structlog

from truthordare.models.config import AppConfig
from truthordare.scheduling.cleanup import RetentionCleanupJob
from truthordare.scheduling.generation import ContentGenerationJob
from truthordare.scheduling.scheduler import JobScheduler
from truthordare.services.ai.base import ContentProvider
from truthordare.services.prompts import PromptSource
from truthordare.storage.database import Database
from truthordare.storage.repositories import CategoryRepository, TaskRepository
from truthordare.utils.exceptions import SchedulerError

logger = structlog.get_logger()


@dataclass
class ScheduledJobs:
    scheduler: JobScheduler
    cleanup: RetentionCleanupJob
    generation: ContentGenerationJob


def build_scheduler(
    config: AppConfig,
    database: Database,
    provider: ContentProvider,
    prompt_loader: PromptSource,
) -> ScheduledJobs:
    """Create the scheduler and register the cleanup and generation jobs.

    A job that fails to register is logged and left out; the scheduler is
    still returned.
    """
    settings = config.scheduler
    scheduler = JobScheduler(
        timezone=settings.timezone,
        misfire_grace_time=settings.misfire_grace_time,
        enabled=settings.enabled,
        shutdown_timeout=settings.shutdown_timeout_seconds,
    )

    cleanup = RetentionCleanupJob(database, settings.cleanup)
    generation = ContentGenerationJob(
        categories=CategoryRepository(database),
        tasks=TaskRepository(database),
        provider=provider,
        prompts=prompt_loader,
        settings=settings.generation,
    )

    for job in (cleanup, generation):
        try:
            scheduler.add_job(job.to_job())
        except SchedulerError as e:
            logger.error("job_registration_failed", job_name=job.name, error=str(e))

    return ScheduledJobs(scheduler=scheduler, cleanup=cleanup, generation=generation)
