"""Relational storage for categories and tasks."""

from truthordare.storage.database import Base, Database
from truthordare.storage.repositories import (
    CategoryRepository,
    CategoryStore,
    TaskRepository,
    TaskStore,
)
from truthordare.storage.schema import CategoryRow, TaskRow

__all__ = [
    "Base",
    "Database",
    "CategoryRepository",
    "CategoryStore",
    "TaskRepository",
    "TaskStore",
    "CategoryRow",
    "TaskRow",
]
