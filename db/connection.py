"""Database connection module for the notifier.

Provides:
- create_engine(): AsyncEngine built from the database config section
- make_session_factory(): Session factory bound to an engine
- get_db(): async context manager for use in pipeline code
- ping(): startup connectivity check
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.engine import make_url as _make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app_config import DatabaseConfig

logger = logging.getLogger(__name__)


def create_engine(conf: DatabaseConfig) -> AsyncEngine:
    """Create the async engine; DATABASE_NAME becomes the default schema."""
    url = _make_url(conf.connection_string)
    engine = create_async_engine(url, echo=False, pool_pre_ping=True)
    if conf.name:
        engine = engine.execution_options(schema_translate_map={None: conf.name})
    return engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def get_db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Async context manager that yields a database session.

    Usage:
        async with get_db(session_factory) as db:
            result = await db.execute(...)
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Database session rolled back due to exception")
            raise


async def ping(engine: AsyncEngine) -> bool:
    """Return True if the database answers a trivial query."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        logger.exception("unable to connect to database")
        return False
    return True
