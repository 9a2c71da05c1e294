# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile database connection management using SQLAlchemy async.

The ProfileDatabase object owns the async engine and sessionmaker. It is
constructed once at application startup, stored on the application state
and handed to the services that need it. There is no module-level engine.

Example:
    from src.infrastructure.database.connection import ProfileDatabase

    database = ProfileDatabase.from_settings(settings)

    async with database.session() as session:
        result = await session.execute(select(Student))
        students = result.scalars().all()

    await database.close()
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from src.core.config.settings import Settings


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class ProfileDatabase:
    """Async engine and session factory for the profile database.

    Attributes:
        engine: SQLAlchemy async engine.
        sessionmaker: Session factory bound to the engine.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        """Initialize with an existing engine.

        Args:
            engine: SQLAlchemy async engine.
        """
        self.engine = engine
        self.sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> "ProfileDatabase":
        """Create a database from a connection URL.

        Args:
            url: Async SQLAlchemy URL.
            **engine_kwargs: Extra keyword arguments for create_async_engine.

        Returns:
            New ProfileDatabase.

        Raises:
            DatabaseError: If engine creation fails.
        """
        try:
            engine = create_async_engine(url, **engine_kwargs)
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to initialize profile database connection", e) from e
        return cls(engine)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ProfileDatabase":
        """Create a pooled database from application settings.

        Args:
            settings: Application settings containing database configuration.

        Returns:
            New ProfileDatabase.
        """
        return cls.from_url(
            settings.profile_db.url,
            pool_size=settings.profile_db.pool_size,
            max_overflow=settings.profile_db.max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
            echo=settings.debug and settings.log_level == "DEBUG",
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Get an async session.

        The session is committed on success and rolled back on exception.

        Yields:
            AsyncSession for database operations.

        Raises:
            DatabaseError: If a database operation fails.
        """
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError("Database operation failed", e) from e
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        """Check if the database is reachable.

        Returns:
            True if the database is reachable, False otherwise.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    async def close(self) -> None:
        """Dispose of all pooled connections."""
        await self.engine.dispose()
