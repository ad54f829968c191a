"""SQLAlchemy tables for categories and tasks.

Both tables are soft-deleted: ``deleted_at`` is set instead of removing
the row, and the retention cleanup job purges old soft-deleted rows.
Timestamps are naive UTC.
"""

import datetime
import uuid
from typing import Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from truthordare.storage.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class TimestampedMixin:
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, default=datetime.datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime,
        default=datetime.datetime.utcnow,
        onupdate=datetime.datetime.utcnow,
        nullable=False,
    )
    deleted_at: Mapped[Optional[datetime.datetime]] = mapped_column(
        DateTime, nullable=True, index=True
    )


class CategoryRow(TimestampedMixin, Base):
    __tablename__ = "categories"

    emoji: Mapped[str] = mapped_column(String(50), default="📝")
    age_group: Mapped[str] = mapped_column(
        String(20), default="adults", nullable=False, index=True
    )
    label: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    requires_consent: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, index=True)

    tasks: Mapped[List["TaskRow"]] = relationship(back_populates="category")


class TaskRow(TimestampedMixin, Base):
    __tablename__ = "tasks"

    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("categories.id"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    text: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False)
    min_age: Mapped[int] = mapped_column(Integer, default=0, index=True)
    requires_consent: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    category: Mapped[CategoryRow] = relationship(back_populates="tasks")
