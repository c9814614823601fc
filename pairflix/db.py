"""Database connection and session management."""

import logging
import os
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from pairflix.config import settings

logger = logging.getLogger(__name__)

# Callable returning an async context manager that yields a session
SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]

# Ensure database directory exists
# Skip for in-memory databases or when directory creation fails (e.g., in tests)
if "sqlite" in settings.database_url and ":memory:" not in settings.database_url:
    db_path = settings.database_url.replace("sqlite+aiosqlite:///", "")
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        try:
            os.makedirs(db_dir, exist_ok=True)
            logger.info(f"Created database directory: {db_dir}")
        except PermissionError:
            logger.debug(f"Skipping database directory creation (no permissions): {db_dir}")

# For SQLite, add timeout so concurrent writers wait on locks
connect_args = {}
if "sqlite" in settings.database_url:
    connect_args = {
        "check_same_thread": False,
        "timeout": 30.0,
    }

engine = create_async_engine(
    settings.database_url,
    echo=settings.log_level == "DEBUG",
    connect_args=connect_args,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


@asynccontextmanager
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager that yields a database session and ensures it closes.

    The session maker is looked up at call time so tests can swap it.
    """
    async with async_session_maker() as session:
        yield session


async def init_db():
    """Initialize database - create all tables."""
    # Import models so they register with Base.metadata
    from pairflix import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Enable WAL mode for better concurrency with SQLite
    if "sqlite" in settings.database_url and ":memory:" not in settings.database_url:
        async with engine.connect() as conn:
            await conn.execute(text("PRAGMA journal_mode=WAL"))
            await conn.execute(text("PRAGMA synchronous=NORMAL"))
            await conn.execute(text("PRAGMA busy_timeout=30000"))
            await conn.commit()

    logger.info("Database initialized successfully")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database sessions.

    Yields:
        Database session
    """
    async with db_session() as session:
        yield session
