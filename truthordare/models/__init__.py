"""Data models for the Truth or Dare job subsystem."""

from truthordare.models.config import (
    AISettings,
    AppConfig,
    CleanupSettings,
    DatabaseSettings,
    GenerationSettings,
    LoggingSettings,
    RetryConfig,
    SchedulerSettings,
)
from truthordare.models.content import (
    SUPPORTED_LANGUAGES,
    AgeGroup,
    Category,
    CleanupPreview,
    CleanupStats,
    GeneratedContent,
    GenerateError,
    GenerationCombination,
    GenerationStats,
    OnDemandRequest,
    OnDemandResult,
    Task,
    TaskType,
)
from truthordare.models.scheduler import JobInfo, JobStatus

__all__ = [
    # Config
    "AISettings",
    "AppConfig",
    "CleanupSettings",
    "DatabaseSettings",
    "GenerationSettings",
    "LoggingSettings",
    "RetryConfig",
    "SchedulerSettings",
    # Content
    "SUPPORTED_LANGUAGES",
    "AgeGroup",
    "Category",
    "CleanupPreview",
    "CleanupStats",
    "GeneratedContent",
    "GenerateError",
    "GenerationCombination",
    "GenerationStats",
    "OnDemandRequest",
    "OnDemandResult",
    "Task",
    "TaskType",
    # Scheduler
    "JobInfo",
    "JobStatus",
]
