"""Tests for build_scheduler wiring."""

from unittest.mock import MagicMock

from truthordare.models.config import AppConfig
from truthordare.scheduling.cleanup import RetentionCleanupJob
from truthordare.scheduling.generation import ContentGenerationJob
from truthordare.scheduling.setup import build_scheduler
from truthordare.services.prompts import PromptLoader


def build(config):
    return build_scheduler(config, MagicMock(), MagicMock(), PromptLoader())


class TestBuildScheduler:
    """Tests for build_scheduler."""

    def test_registers_both_jobs(self):
        jobs = build(AppConfig())

        assert isinstance(jobs.cleanup, RetentionCleanupJob)
        assert isinstance(jobs.generation, ContentGenerationJob)
        assert [j.name for j in jobs.scheduler.get_jobs()] == [
            "cleanup",
            "auto-generate",
        ]

    def test_schedules_come_from_config(self):
        config = AppConfig()
        config.scheduler.cleanup.schedule = "30 4 * * 1"
        config.scheduler.generation.schedule = "0 */6 * * *"

        schedules = {j.name: j.schedule for j in build(config).scheduler.get_jobs()}

        assert schedules == {"cleanup": "30 4 * * 1", "auto-generate": "0 */6 * * *"}

    def test_disabled_job_not_registered(self):
        config = AppConfig()
        config.scheduler.generation.enabled = False

        jobs = build(config)

        assert [j.name for j in jobs.scheduler.get_jobs()] == ["cleanup"]
        assert jobs.generation is not None

    def test_invalid_schedule_is_logged_not_raised(self):
        """One bad job does not prevent the other from registering."""
        config = AppConfig()
        config.scheduler.cleanup.schedule = "every sunday"

        jobs = build(config)

        assert [j.name for j in jobs.scheduler.get_jobs()] == ["auto-generate"]

    def test_scheduler_settings_applied(self):
        config = AppConfig()
        config.scheduler.enabled = False
        config.scheduler.shutdown_timeout_seconds = 12.5

        scheduler = build(config).scheduler

        assert scheduler.enabled is False
        assert scheduler.shutdown_timeout == 12.5
