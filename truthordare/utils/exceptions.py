"""Custom exceptions for the Truth or Dare job subsystem.

This module defines the exception hierarchy for scheduled work:
- Base exception for all application errors
- Scheduler errors (registration, lookup, cancellation)
- Generation errors (provider, retryable vs terminal, persistence)
- Cleanup errors (purge vs storage reclamation)

All exceptions inherit from TruthOrDareError so callers at the edge
(CLI, health server) can catch everything in a single except block.
"""


class TruthOrDareError(Exception):
    """Base exception for all application errors."""

    pass


# Scheduler


class SchedulerError(TruthOrDareError):
    """Base for scheduler errors."""

    pass


class InvalidScheduleError(SchedulerError):
    """Schedule expression could not be parsed.

    Raised by JobScheduler.add_job before anything is registered.
    """

    def __init__(self, job_name: str, schedule: str, reason: str) -> None:
        self.job_name = job_name
        self.schedule = schedule
        super().__init__(
            f"Invalid schedule '{schedule}' for job '{job_name}': {reason}"
        )


class JobNotFoundError(SchedulerError):
    """No registered job has the requested name."""

    def __init__(self, job_name: str) -> None:
        self.job_name = job_name
        super().__init__(f"Job not found: {job_name}")


class DuplicateJobError(SchedulerError):
    """A job with the same name is already registered."""

    def __init__(self, job_name: str) -> None:
        self.job_name = job_name
        super().__init__(f"Job already registered: {job_name}")


class JobAlreadyRunningError(SchedulerError):
    """Manual run requested while the same job is still executing."""

    def __init__(self, job_name: str) -> None:
        self.job_name = job_name
        super().__init__(f"Job is already running: {job_name}")


class JobCancelledError(SchedulerError):
    """Job stopped early because the scheduler is shutting down."""

    pass


# Content generation


class GenerationError(TruthOrDareError):
    """Base for content generation errors."""

    pass


class ProviderUnconfiguredError(GenerationError):
    """Content provider has no credentials.

    The scheduled generation job treats this as a soft skip. The
    on-demand path raises it to the caller.
    """

    def __init__(self, message: str = "AI provider is not configured") -> None:
        super().__init__(message)


class TransientGenerationError(GenerationError):
    """Generation failed for a reason that may succeed on retry."""

    pass


class TerminalGenerationError(GenerationError):
    """Generation failed and retrying the same combination will not help."""

    pass


class PromptTemplateError(TerminalGenerationError):
    """Prompt template is missing or unreadable."""

    pass


class PersistenceError(GenerationError):
    """A generated item could not be stored.

    Skipped per item; never aborts a combination or a run.
    """

    pass


# Retention cleanup


class CleanupError(TruthOrDareError):
    """Base for retention cleanup errors."""

    pass


class PurgeError(CleanupError):
    """Deleting expired rows from a table failed.

    Aborts the cleanup run. Tables purged earlier in the same run stay
    purged.
    """

    def __init__(self, table: str, reason: str) -> None:
        self.table = table
        super().__init__(f"Failed to purge table '{table}': {reason}")


class ReclamationError(CleanupError):
    """Storage reclamation (VACUUM) failed after a successful purge.

    Logged only; the cleanup job still succeeds.
    """

    pass
