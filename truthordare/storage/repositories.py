"""Category and task repositories.

The generation job only reads categories and only inserts tasks, so the
protocols it depends on are deliberately narrow.
"""

from typing import List, Optional, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from truthordare.models.content import Category, Task
from truthordare.storage.database import Database
from truthordare.storage.schema import CategoryRow, TaskRow
from truthordare.utils.exceptions import PersistenceError

logger = structlog.get_logger()


class CategoryStore(Protocol):
    async def find_active(self) -> List[Category]: ...

    async def find_by_id(self, category_id: str) -> Optional[Category]: ...


class TaskStore(Protocol):
    async def create(self, task: Task) -> Task: ...


def _to_category(row: CategoryRow) -> Category:
    return Category(
        id=row.id,
        label=dict(row.label or {}),
        emoji=row.emoji or "📝",
        age_group=row.age_group or "",
        requires_consent=bool(row.requires_consent),
        is_active=bool(row.is_active),
        sort_order=row.sort_order or 0,
    )


class CategoryRepository:
    """Reads categories that are active and not soft-deleted."""

    def __init__(self, database: Database):
        self.database = database

    async def find_active(self) -> List[Category]:
        stmt = (
            select(CategoryRow)
            .where(CategoryRow.is_active.is_(True), CategoryRow.deleted_at.is_(None))
            .order_by(CategoryRow.sort_order.asc(), CategoryRow.created_at.desc())
        )
        async with self.database.session() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [_to_category(row) for row in rows]

    async def find_by_id(self, category_id: str) -> Optional[Category]:
        stmt = select(CategoryRow).where(
            CategoryRow.id == category_id, CategoryRow.deleted_at.is_(None)
        )
        async with self.database.session() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
        return _to_category(row) if row is not None else None


class TaskRepository:
    """Inserts generated tasks, one transaction per task."""

    def __init__(self, database: Database):
        self.database = database

    async def create(self, task: Task) -> Task:
        """Insert a task and return it with its generated id.

        Raises:
            PersistenceError: If the insert fails
        """
        row = TaskRow(
            category_id=task.category_id,
            type=task.type.value,
            text=dict(task.text),
            min_age=task.min_age,
            requires_consent=task.requires_consent,
            is_active=task.is_active,
        )
        if task.id:
            row.id = task.id

        try:
            async with self.database.session() as session:
                async with session.begin():
                    session.add(row)
        except SQLAlchemyError as e:
            raise PersistenceError(f"failed to save task: {e}")

        return task.model_copy(update={"id": row.id})
