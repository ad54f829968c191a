"""Async database handle.

One engine and session factory per process, created from DatabaseSettings
and passed to repositories and jobs through their constructors.
"""

from typing import Optional

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from truthordare.models.config import DatabaseSettings

logger = structlog.get_logger()


class Base(DeclarativeBase):
    pass


def normalize_url(url: str) -> str:
    """Point plain driver URLs at their async drivers."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


class Database:
    """Owns the SQLAlchemy async engine and session factory."""

    def __init__(
        self,
        settings: Optional[DatabaseSettings] = None,
        engine: Optional[AsyncEngine] = None,
    ):
        self.settings = settings or DatabaseSettings()
        self.engine = engine or create_async_engine(
            normalize_url(self.settings.url), echo=self.settings.echo, future=True
        )
        self.session_factory = async_sessionmaker(
            bind=self.engine, expire_on_commit=False, class_=AsyncSession
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_all(self) -> None:
        # Import registers the tables on Base.metadata
        from truthordare.storage import schema  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_schema_ready", dialect=self.dialect)

    async def ping(self) -> bool:
        """Run a trivial query. Raises on connection failure."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()
