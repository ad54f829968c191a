"""Tests for RetentionCleanupJob."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from truthordare.models.config import CleanupSettings
from truthordare.scheduling.cleanup import (
    JOB_NAME,
    RetentionCleanupJob,
    months_before,
)
from truthordare.scheduling.jobs import JobContext
from truthordare.storage.schema import CategoryRow, TaskRow
from truthordare.utils.exceptions import (
    JobCancelledError,
    PurgeError,
    ReclamationError,
)


def months_ago(months):
    return months_before(datetime.utcnow(), months)


async def count_rows(database, row_type):
    async with database.session() as session:
        return (
            await session.execute(select(func.count()).select_from(row_type))
        ).scalar_one()


@pytest.fixture
def six_month_settings():
    return CleanupSettings(retention_months=6)


@pytest_asyncio.fixture
async def seeded(database, add_category, add_task):
    """Rows deleted 13 months ago, 1 month ago and never."""
    await add_category("old", deleted_at=months_ago(13))
    await add_category("recent", deleted_at=months_ago(1))
    await add_category("live")
    await add_task("live", deleted_at=months_ago(13))
    await add_task("live", deleted_at=months_ago(13) - timedelta(days=3))
    await add_task("live", deleted_at=months_ago(1))
    await add_task("live")
    return database


class TestMonthsBefore:
    """Tests for calendar month subtraction."""

    def test_simple(self):
        assert months_before(datetime(2026, 5, 15, 8, 30), 2) == datetime(
            2026, 3, 15, 8, 30
        )

    def test_crosses_year(self):
        assert months_before(datetime(2026, 1, 15), 2) == datetime(2025, 11, 15)

    def test_clamps_day(self):
        assert months_before(datetime(2026, 3, 31), 1) == datetime(2026, 2, 28)
        assert months_before(datetime(2024, 3, 31), 1) == datetime(2024, 2, 29)

    def test_zero_months(self):
        moment = datetime(2026, 7, 4, 12, 0)
        assert months_before(moment, 0) == moment


class TestCleanupJob:
    """Tests for the purge and reclamation run."""

    def test_job_metadata(self):
        job = RetentionCleanupJob(MagicMock())

        assert job.name == JOB_NAME == "cleanup"
        assert job.schedule == "0 0 * * 0"
        assert job.settings.retention_months == 2

    def test_cutoff_date(self, six_month_settings):
        job = RetentionCleanupJob(MagicMock(), six_month_settings)

        assert job.cutoff_date(datetime(2026, 8, 31)) == datetime(2026, 2, 28)

    @pytest.mark.asyncio
    async def test_purges_only_expired_rows(self, seeded, six_month_settings):
        job = RetentionCleanupJob(seeded, six_month_settings)

        stats = await job.run(JobContext(JOB_NAME))

        assert stats.tasks_deleted == 2
        assert stats.categories_deleted == 1
        assert await count_rows(seeded, TaskRow) == 2
        assert await count_rows(seeded, CategoryRow) == 2

        async with seeded.session() as session:
            ids = set((await session.execute(select(CategoryRow.id))).scalars())
        assert ids == {"recent", "live"}

    @pytest.mark.asyncio
    async def test_reclaims_storage_on_sqlite(self, seeded, six_month_settings):
        job = RetentionCleanupJob(seeded, six_month_settings)

        stats = await job.run(JobContext(JOB_NAME))

        assert stats.reclaimed is True
        assert stats.size_before_bytes is not None
        assert stats.size_after_bytes is not None
        assert stats.space_saved_bytes == stats.size_before_bytes - stats.size_after_bytes

    @pytest.mark.asyncio
    async def test_second_run_deletes_nothing(self, seeded, six_month_settings):
        job = RetentionCleanupJob(seeded, six_month_settings)
        await job.run(JobContext(JOB_NAME))

        stats = await job.run(JobContext(JOB_NAME))

        assert stats.tasks_deleted == 0
        assert stats.categories_deleted == 0

    @pytest.mark.asyncio
    async def test_reclamation_failure_does_not_fail_run(
        self, seeded, six_month_settings
    ):
        job = RetentionCleanupJob(seeded, six_month_settings)

        with patch.object(
            RetentionCleanupJob,
            "_reclaim_storage",
            AsyncMock(side_effect=ReclamationError("VACUUM failed: database is locked")),
        ):
            stats = await job.run(JobContext(JOB_NAME))

        assert stats.tasks_deleted == 2
        assert stats.reclaimed is False
        assert stats.space_saved_bytes is None

    @pytest.mark.asyncio
    async def test_reclamation_connect_failure_does_not_fail_run(
        self, six_month_settings
    ):
        """A connection error after the purge is logged, not raised."""
        conn = AsyncMock()
        conn.execute.return_value = MagicMock(rowcount=3)
        database = MagicMock()
        database.dialect = "sqlite"
        database.engine.begin.return_value.__aenter__.return_value = conn
        database.engine.begin.return_value.__aexit__.return_value = False
        database.engine.connect.side_effect = OperationalError(
            "connect", {}, Exception("unable to open database file")
        )
        job = RetentionCleanupJob(database, six_month_settings)

        stats = await job.run(JobContext(JOB_NAME))

        assert stats.tasks_deleted == 3
        assert stats.categories_deleted == 3
        assert stats.reclaimed is False
        assert stats.size_before_bytes is None
        database.engine.connect.assert_called_once()

    @pytest.mark.asyncio
    async def test_purge_failure_aborts_before_reclamation(self, six_month_settings):
        """Tasks purge commits; the categories failure raises PurgeError."""
        conn = AsyncMock()
        conn.execute.side_effect = [
            MagicMock(rowcount=4),
            OperationalError("DELETE FROM categories", {}, Exception("disk I/O error")),
        ]
        database = MagicMock()
        database.engine.begin.return_value.__aenter__.return_value = conn
        database.engine.begin.return_value.__aexit__.return_value = False
        job = RetentionCleanupJob(database, six_month_settings)
        job._reclaim_storage = AsyncMock()

        with pytest.raises(PurgeError) as exc_info:
            await job.run(JobContext(JOB_NAME))

        assert exc_info.value.table == "categories"
        assert "disk I/O error" in str(exc_info.value)
        assert database.engine.begin.call_count == 2
        job._reclaim_storage.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsupported_dialect_skips_reclamation(self, six_month_settings):
        conn = AsyncMock()
        conn.execute.return_value = MagicMock(rowcount=0)
        database = MagicMock()
        database.dialect = "mysql"
        database.engine.begin.return_value.__aenter__.return_value = conn
        database.engine.begin.return_value.__aexit__.return_value = False
        job = RetentionCleanupJob(database, six_month_settings)

        stats = await job.run(JobContext(JOB_NAME))

        assert stats.reclaimed is False
        database.engine.connect.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, seeded, six_month_settings):
        job = RetentionCleanupJob(seeded, six_month_settings)
        ctx = JobContext(JOB_NAME)
        ctx.cancel()

        with pytest.raises(JobCancelledError):
            await job.run(ctx)

        assert await count_rows(seeded, TaskRow) == 4


class TestCleanupPreview:
    """Tests for get_cleanup_preview."""

    @pytest.mark.asyncio
    async def test_preview_counts_expired_rows(self, seeded, six_month_settings):
        job = RetentionCleanupJob(seeded, six_month_settings)

        preview = await job.get_cleanup_preview()

        assert preview.retention_months == 6
        assert preview.tasks_to_delete == 2
        assert preview.categories_to_delete == 1

    @pytest.mark.asyncio
    async def test_preview_does_not_mutate(self, seeded, six_month_settings):
        job = RetentionCleanupJob(seeded, six_month_settings)

        first = await job.get_cleanup_preview()
        second = await job.get_cleanup_preview()

        assert first.tasks_to_delete == second.tasks_to_delete
        assert first.categories_to_delete == second.categories_to_delete
        assert await count_rows(seeded, TaskRow) == 4
        assert await count_rows(seeded, CategoryRow) == 3

    @pytest.mark.asyncio
    async def test_preview_matches_run(self, seeded, six_month_settings):
        job = RetentionCleanupJob(seeded, six_month_settings)

        preview = await job.get_cleanup_preview()
        stats = await job.run(JobContext(JOB_NAME))

        assert stats.tasks_deleted == preview.tasks_to_delete
        assert stats.categories_deleted == preview.categories_to_delete

        after = await job.get_cleanup_preview()
        assert after.tasks_to_delete == 0
        assert after.categories_to_delete == 0
