"""Retention cleanup job.

Permanently removes rows that were soft-deleted more than
``retention_months`` ago, then reclaims storage with VACUUM.

Purge order is tasks, then categories. Each table is committed on its
own, so a failure on categories leaves the tasks purge in place.
"""

import calendar
from datetime import datetime
from typing import Optional, Type

import structlog
from sqlalchemy import delete, func, select, text
from sqlalchemy.exc import SQLAlchemyError

from truthordare.models.config import CleanupSettings
from truthordare.models.content import CleanupPreview, CleanupStats
from truthordare.observability.metrics import CLEANUP_ROWS_PURGED, STORAGE_RECLAIMED_BYTES
from truthordare.scheduling.jobs import BaseJob, JobContext
from truthordare.storage.database import Database
from truthordare.storage.schema import CategoryRow, TaskRow, TimestampedMixin
from truthordare.utils.exceptions import PurgeError, ReclamationError

logger = structlog.get_logger()

JOB_NAME = "cleanup"
JOB_DESCRIPTION = (
    "Clean up soft-deleted data older than retention period and run VACUUM"
)

# Children before parents
PURGE_ORDER = (TaskRow, CategoryRow)

SQLITE_SIZE_QUERY = (
    "SELECT page_count * page_size FROM pragma_page_count(), pragma_page_size()"
)
POSTGRES_SIZE_QUERY = "SELECT pg_database_size(current_database())"


def months_before(moment: datetime, months: int) -> datetime:
    """Subtract calendar months, clamping the day to the target month's length."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class RetentionCleanupJob(BaseJob):
    """Purges expired soft-deleted rows and compacts the database."""

    def __init__(self, database: Database, settings: Optional[CleanupSettings] = None):
        self.settings = settings or CleanupSettings()
        super().__init__(
            name=JOB_NAME,
            description=JOB_DESCRIPTION,
            schedule=self.settings.schedule,
            enabled=self.settings.enabled,
        )
        self.database = database

    def cutoff_date(self, now: Optional[datetime] = None) -> datetime:
        return months_before(now or datetime.utcnow(), self.settings.retention_months)

    async def run(self, ctx: JobContext) -> CleanupStats:
        """Purge expired rows and reclaim storage.

        Raises:
            PurgeError: If deleting from a table fails; reclamation is skipped
            JobCancelledError: If cancelled before starting
        """
        ctx.raise_if_cancelled()

        cutoff = self.cutoff_date()
        stats = CleanupStats(cutoff_date=cutoff)

        logger.info(
            "cleanup_started",
            retention_months=self.settings.retention_months,
            cutoff_date=cutoff.isoformat(),
        )

        for row_type in PURGE_ORDER:
            deleted = await self._purge_table(row_type, cutoff)
            if row_type is TaskRow:
                stats.tasks_deleted = deleted
            else:
                stats.categories_deleted = deleted

        logger.info(
            "cleanup_rows_removed",
            tasks_deleted=stats.tasks_deleted,
            categories_deleted=stats.categories_deleted,
        )

        try:
            await self._reclaim_storage(stats)
        except ReclamationError as e:
            logger.error("storage_reclamation_failed", error=str(e))

        logger.info(
            "cleanup_completed",
            tasks_deleted=stats.tasks_deleted,
            categories_deleted=stats.categories_deleted,
            reclaimed=stats.reclaimed,
            space_saved_bytes=stats.space_saved_bytes,
        )
        return stats

    async def get_cleanup_preview(self) -> CleanupPreview:
        """Count what a cleanup run would purge right now. Never mutates."""
        cutoff = self.cutoff_date()
        preview = CleanupPreview(
            cutoff_date=cutoff, retention_months=self.settings.retention_months
        )

        async with self.database.engine.connect() as conn:
            for row_type in PURGE_ORDER:
                stmt = select(func.count()).select_from(row_type).where(
                    *self._expired(row_type, cutoff)
                )
                count = (await conn.execute(stmt)).scalar_one()
                if row_type is TaskRow:
                    preview.tasks_to_delete = count
                else:
                    preview.categories_to_delete = count

        return preview

    @staticmethod
    def _expired(row_type: Type[TimestampedMixin], cutoff: datetime) -> tuple:
        return (row_type.deleted_at.is_not(None), row_type.deleted_at < cutoff)

    async def _purge_table(self, row_type: Type[TimestampedMixin], cutoff: datetime) -> int:
        table = row_type.__tablename__  # type: ignore[attr-defined]
        stmt = delete(row_type).where(*self._expired(row_type, cutoff))

        try:
            async with self.database.engine.begin() as conn:
                result = await conn.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("cleanup_table_failed", table=table, error=str(e))
            raise PurgeError(table, str(e))

        deleted = result.rowcount or 0
        CLEANUP_ROWS_PURGED.labels(table=table).inc(deleted)
        logger.info("cleanup_table_purged", table=table, rows_deleted=deleted)
        return deleted

    async def _reclaim_storage(self, stats: CleanupStats) -> None:
        """VACUUM the database, recording sizes before and after.

        Raises:
            ReclamationError: If VACUUM fails
        """
        dialect = self.database.dialect
        if dialect == "sqlite":
            size_query = SQLITE_SIZE_QUERY
        elif dialect == "postgresql":
            size_query = POSTGRES_SIZE_QUERY
        else:
            logger.info("storage_reclamation_unsupported", dialect=dialect)
            return

        logger.info("storage_reclamation_started", dialect=dialect)

        try:
            # VACUUM cannot run inside a transaction
            async with self.database.engine.connect() as raw_conn:
                conn = await raw_conn.execution_options(isolation_level="AUTOCOMMIT")

                stats.size_before_bytes = await self._database_size(conn, size_query)
                await conn.execute(text("VACUUM"))
                stats.size_after_bytes = await self._database_size(conn, size_query)
        except SQLAlchemyError as e:
            raise ReclamationError(f"VACUUM failed: {e}")

        stats.reclaimed = True
        if stats.space_saved_bytes is not None:
            STORAGE_RECLAIMED_BYTES.set(stats.space_saved_bytes)

        logger.info(
            "storage_reclamation_completed",
            size_before_bytes=stats.size_before_bytes,
            size_after_bytes=stats.size_after_bytes,
            space_saved_bytes=stats.space_saved_bytes,
        )

    @staticmethod
    async def _database_size(conn, query: str) -> Optional[int]:
        try:
            value = (await conn.execute(text(query))).scalar()
        except SQLAlchemyError as e:
            logger.warning("database_size_unavailable", error=str(e))
            return None
        return int(value) if value is not None else None
