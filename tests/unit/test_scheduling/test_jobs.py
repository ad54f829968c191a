"""Tests for JobContext and BaseJob."""

import asyncio

import pytest

from truthordare.observability.context import get_correlation_id
from truthordare.scheduling.jobs import BaseJob, Job, JobContext
from truthordare.utils.exceptions import JobCancelledError


class RecordingJob(BaseJob):
    """Job that records the correlation ID seen during run()."""

    def __init__(self, error=None, **kwargs):
        super().__init__(
            name=kwargs.pop("name", "recording"),
            description="Records its context",
            schedule=kwargs.pop("schedule", "*/5 * * * *"),
            **kwargs,
        )
        self.error = error
        self.seen_correlation_id = None

    async def run(self, ctx):
        self.seen_correlation_id = get_correlation_id()
        if self.error is not None:
            raise self.error
        return {"job": ctx.job_name}


class TestJobContext:
    """Tests for cooperative cancellation."""

    def test_not_cancelled_by_default(self):
        ctx = JobContext("job")

        assert ctx.cancelled is False
        ctx.raise_if_cancelled()

    def test_cancel_sets_flag_and_raises(self):
        ctx = JobContext("job")

        ctx.cancel()

        assert ctx.cancelled is True
        with pytest.raises(JobCancelledError, match="Job 'job' cancelled"):
            ctx.raise_if_cancelled()

    def test_shared_event_cancels_every_context(self):
        """Contexts built on the same event observe one signal."""
        event = asyncio.Event()
        first = JobContext("a", event)
        second = JobContext("b", event)

        event.set()

        assert first.cancelled and second.cancelled


class TestBaseJob:
    """Tests for BaseJob execution wrapper."""

    @pytest.mark.asyncio
    async def test_call_returns_run_result(self):
        job = RecordingJob()

        result = await job(JobContext("recording"))

        assert result == {"job": "recording"}

    @pytest.mark.asyncio
    async def test_correlation_id_set_during_run_and_cleared(self):
        """Correlation ID is prefixed with the job name and cleared after."""
        job = RecordingJob(name="nightly")

        await job(JobContext("nightly"))

        assert job.seen_correlation_id.startswith("nightly-")
        assert get_correlation_id() is None

    @pytest.mark.asyncio
    async def test_errors_propagate_and_clear_correlation(self):
        job = RecordingJob(error=RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            await job(JobContext("recording"))

        assert get_correlation_id() is None

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        job = RecordingJob(error=JobCancelledError("stop"))

        with pytest.raises(JobCancelledError):
            await job(JobContext("recording"))

    def test_to_job(self):
        """to_job exposes the instance itself as the job function."""
        job = RecordingJob(name="weekly", schedule="0 0 * * 0", enabled=False)

        registered = job.to_job()

        assert isinstance(registered, Job)
        assert registered.name == "weekly"
        assert registered.description == "Records its context"
        assert registered.schedule == "0 0 * * 0"
        assert registered.enabled is False
        assert registered.fn is job
