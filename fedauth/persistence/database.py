"""Database connection and session management.

Provides async database engine and session factory for PostgreSQL.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fedauth.config import Settings
from fedauth.domain.error import PersistenceFailureError


def create_engine(settings: Settings) -> AsyncEngine:
    """Create async database engine.

    Args:
        settings: Application settings with database URL

    Returns:
        Configured async engine
    """
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,  # Log SQL queries in debug mode
        pool_pre_ping=True,  # Verify connections before using
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create async session factory.

    Args:
        engine: Database engine

    Returns:
        Session factory for creating database sessions
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
        autoflush=False,  # Manual flushing for better control
    )


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Wrap SQLAlchemy faults in PersistenceFailureError.

    IntegrityError passes through untouched so repositories can map
    constraint violations to domain errors themselves.

    Args:
        operation: Short name of the repository operation, for the message
    """
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        raise PersistenceFailureError(operation, str(e)) from e
