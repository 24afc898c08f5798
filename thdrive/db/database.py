"""
Database Connection and Session Management

Settlements open one AsyncSession per request (or per Celery task) and commit
once; all money columns live in PostgreSQL via asyncpg, SQLite via aiosqlite
in tests.
"""
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from thdrive.core.config import settings
from thdrive.core.logging import get_logger

logger = get_logger(__name__)


def _engine_options(database_url: str, **pool_options: Any) -> dict[str, Any]:
    """Engine kwargs for the URL; SQLite pools take no sizing options"""
    options: dict[str, Any] = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        options.update(pool_options)
    return options


def create_engine_for(database_url: str, **pool_options: Any) -> AsyncEngine:
    return create_async_engine(database_url, **_engine_options(database_url, **pool_options))


engine = create_engine_for(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)

Base = declarative_base()


async def get_db() -> AsyncSession:
    """Request-scoped session for the settlement routes"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def get_task_session():
    """
    Session on a short-lived engine for one Celery task run.

    The task runs in its own event loop, so the module-level engine cannot be
    shared with it. The engine is disposed even when the task body raises.
    """
    task_engine = create_engine_for(settings.DATABASE_URL, pool_size=5, max_overflow=10)
    task_session_maker = async_sessionmaker(
        bind=task_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    try:
        async with task_session_maker() as session:
            yield session
    finally:
        await task_engine.dispose()
        logger.debug("Task engine disposed")
