"""
Async database session management for LeakWatch.

Provides:
- Async engine creation
- AsyncSession factory
- Context manager for sessions
- Lifecycle functions for app startup/shutdown
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from leakwatch.config import get_logger, get_settings

logger = get_logger(__name__)

# Global engine and session factory
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Get the async database engine.

    Raises:
        RuntimeError: If database has not been initialized.
    """
    if _engine is None:
        raise RuntimeError(
            "Database not initialized. Call init_db() first."
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get the async session factory.

    Raises:
        RuntimeError: If database has not been initialized.
    """
    if _async_session_factory is None:
        raise RuntimeError(
            "Database not initialized. Call init_db() first."
        )
    return _async_session_factory


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory used by the application for an engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(*, pool_pre_ping: bool = True, echo: bool = False) -> None:
    """
    Initialize the database engine and session factory.

    Should be called during application startup. Pool checkout and
    connection establishment are both bounded by settings timeouts.

    Args:
        pool_pre_ping: Test connections before use.
        echo: Log all SQL statements (debug only).
    """
    global _engine, _async_session_factory

    if _engine is not None:
        logger.warning("Database already initialized, skipping")
        return

    settings = get_settings()
    database_url = settings.database_url.get_secret_value()

    _engine = create_async_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout_seconds,
        pool_pre_ping=pool_pre_ping,
        connect_args={"timeout": settings.db_connect_timeout_seconds},
        echo=echo if settings.is_development else False,
    )
    _async_session_factory = make_session_factory(_engine)

    logger.info(
        "Database initialized",
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )


async def close_db() -> None:
    """
    Close the database engine and clean up connections.

    Should be called during application shutdown.
    """
    global _engine, _async_session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
        logger.info("Database connection closed")


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions.

    Automatically handles commit on success and rollback on error.

    Example:
        async with get_session() as session:
            result = await session.execute(select(Report))
            reports = result.scalars().all()
    """
    factory = get_session_factory()
    session = factory()

    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def health_check() -> bool:
    """
    Check database connectivity.

    Returns:
        True if database is accessible, False otherwise.
    """
    try:
        async with get_session() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return False
