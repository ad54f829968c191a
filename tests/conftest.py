"""Shared fixtures."""

from datetime import datetime
from typing import Dict, Optional

import pytest
import pytest_asyncio

from truthordare.models.config import DatabaseSettings, GenerationSettings
from truthordare.storage.database import Database
from truthordare.storage.schema import CategoryRow, TaskRow


@pytest_asyncio.fixture
async def database(tmp_path):
    """File-backed SQLite database with the schema created."""
    db = Database(DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"))
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def fast_generation_settings():
    """Generation settings with no waiting between attempts or combinations."""
    return GenerationSettings(
        count_per_combination=2,
        max_retries=3,
        retry_delay_seconds=0.0,
        inter_combination_delay_seconds=0.0,
    )


async def insert_category(
    database: Database,
    category_id: str,
    age_group: str = "adults",
    requires_consent: bool = False,
    is_active: bool = True,
    sort_order: int = 0,
    deleted_at: Optional[datetime] = None,
    label: Optional[Dict[str, str]] = None,
) -> None:
    async with database.session() as session:
        async with session.begin():
            session.add(
                CategoryRow(
                    id=category_id,
                    age_group=age_group,
                    label=label or {"en": category_id.title()},
                    requires_consent=requires_consent,
                    is_active=is_active,
                    sort_order=sort_order,
                    deleted_at=deleted_at,
                )
            )


async def insert_task(
    database: Database,
    category_id: str,
    deleted_at: Optional[datetime] = None,
    task_type: str = "truth",
) -> None:
    async with database.session() as session:
        async with session.begin():
            session.add(
                TaskRow(
                    category_id=category_id,
                    type=task_type,
                    text={"en": "What is your secret talent?"},
                    deleted_at=deleted_at,
                )
            )


@pytest.fixture
def add_category(database):
    """Insert a category row: ``await add_category("party", age_group="teen")``."""

    async def _add(category_id: str, **kwargs) -> None:
        await insert_category(database, category_id, **kwargs)

    return _add


@pytest.fixture
def add_task(database):
    """Insert a task row: ``await add_task("party", deleted_at=...)``."""

    async def _add(category_id: str, **kwargs) -> None:
        await insert_task(database, category_id, **kwargs)

    return _add
