"""Database engine and session management.

The engine is created lazily from ``settings.DATABASE_URL`` so that importing
the application never requires a reachable database. SQLite URLs (used by the
test-suite) get a single shared in-process connection.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from logging import getLogger
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from app.configs import file_logger, settings
from app.errors.database import DatabaseConfigurationError

logger = file_logger(getLogger(__name__))

STATEMENT_TIMEOUT_MS = 30000

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[SQLModelAsyncSession] | None = None


def _configure_engine_events(engine: AsyncEngine) -> None:
    """Configure connection pool events for monitoring."""

    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection: object, connection_record: object) -> None:
        logger.debug("New database connection established")

    @event.listens_for(engine.sync_engine, "checkin")
    def on_checkin(dbapi_connection: object, connection_record: object) -> None:
        logger.debug("Connection returned to pool")


def _engine_kwargs(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    kwargs: dict[str, Any] = {
        "pool_size": settings.POOL_SIZE,
        "max_overflow": settings.MAX_OVERFLOW,
        "pool_timeout": settings.POOL_TIMEOUT,
        "pool_recycle": settings.POOL_RECYCLE,
        "pool_pre_ping": True,
    }
    if "asyncpg" in url:
        kwargs["connect_args"] = {
            "command_timeout": STATEMENT_TIMEOUT_MS / 1000,
            "server_settings": {"statement_timeout": str(STATEMENT_TIMEOUT_MS)},
        }
    return kwargs


def get_engine() -> AsyncEngine:
    """
    Return the process-wide engine, creating it on first use.

    Raises:
        DatabaseConfigurationError: If ``DATABASE_URL`` is not set.
    """
    global _engine, _session_maker  # noqa: PLW0603
    if _engine is None:
        url = settings.DATABASE_URL
        if not url:
            raise DatabaseConfigurationError
        _engine = create_async_engine(url, echo=settings.DATABASE_ECHO, **_engine_kwargs(url))
        if settings.DEBUG:
            _configure_engine_events(_engine)
        _session_maker = async_sessionmaker(
            _engine,
            class_=SQLModelAsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _engine


def get_session_maker() -> async_sessionmaker[SQLModelAsyncSession]:
    """Return the session factory bound to the engine."""
    get_engine()
    assert _session_maker is not None  # noqa: S101
    return _session_maker


@asynccontextmanager
async def transaction() -> AsyncGenerator[AsyncSession]:
    """
    Context manager for explicit transaction management.

    Yields:
        AsyncSession: Database session within a transaction

    Example:
        ```python
        async with transaction() as session:
            session.add(UserDB(name="Ada Lovelace", ...))
            # Commits on successful exit, rolls back on exception
        ```
    """
    async with get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession]:
    """
    Dependency for getting async database sessions.

    Yields:
        AsyncSession: Database session
    """
    async with transaction() as session:
        yield session


async def init_db() -> None:
    """
    Create the tables and indexes declared by the SQLModel models.

    Called on application startup; existing tables are left untouched.
    """
    async with get_engine().begin() as conn:
        # Import models so they register on the metadata
        from app.models import UserDB  # noqa: F401, PLC0415

        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database initialized successfully!")


async def check_db() -> bool:
    """Run a trivial query to verify the database answers."""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError, DatabaseConfigurationError) as e:
        logger.warning(f"Database health check failed: {e}")
        return False
    return True


async def close_db() -> None:
    """
    Close database connections.

    This function should be called on application shutdown
    to properly close all database connections.
    """
    global _engine, _session_maker  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_maker = None
        logger.info("Database connections closed")
