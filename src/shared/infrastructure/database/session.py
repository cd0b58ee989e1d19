"""
Database Session Factory
Creates the async engine and session maker that make up the store handle
"""
from __future__ import annotations

from typing import Any, AsyncIterator, Dict

from contextlib import asynccontextmanager
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from shared.config import Settings
from shared.infrastructure.observability.logger import get_logger

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseSessionFactory:
    """
    Factory for creating async database sessions.

    Owns the async engine and session maker. Components receive
    `session_factory` (and `engine` where DDL is needed) at construction;
    nothing holds the connection in module state.
    """

    def __init__(self, database_url: str, echo: bool = False, pool_size: int = 20, max_overflow: int = 10) -> None:
        """
        Initialize session factory with database connection.

        Args:
            database_url: Async connection string (postgresql+asyncpg / sqlite+aiosqlite)
            echo: Whether to log SQL statements (debug mode)
            pool_size: Connection pool size (ignored for SQLite)
            max_overflow: Max overflow connections beyond pool_size (ignored for SQLite)
        """
        self.database_url = database_url
        self.echo = echo
        self.is_sqlite = database_url.startswith("sqlite")

        engine_kwargs: Dict[str, Any] = {"echo": echo}
        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite+aiosqlite:"):
                # one shared connection, otherwise every session sees an empty database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=3600,  # Recycle connections after 1 hour
            )

        self.engine: AsyncEngine = create_async_engine(database_url, **engine_kwargs)
        if self.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Don't expire objects after commit
            autoflush=False,  # Manual flushing for better control
        )

        logger.info(
            "Database session factory initialized",
            sqlite=self.is_sqlite,
            pool_size=None if self.is_sqlite else pool_size,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseSessionFactory":
        return cls(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """
        Async context manager for sessions.

        Usage:
            async with factory.get_session() as session:
                # Use session
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                logger.error("Session error, rolled back", error=str(e))
                raise

    async def dispose(self) -> None:
        """Close all connections and dispose of the engine."""
        await self.engine.dispose()
        logger.info("Database engine disposed")
