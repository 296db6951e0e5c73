"""Shared fixtures: a throwaway SQLite store built from the real models."""
import pytest
import pytest_asyncio

from app_config import Config, DatabaseConfig, EmailConfig
from db.connection import create_engine, get_db, make_session_factory
from db.models import Base

BASE_URL = "https://mail.test/api/subscribers"
API_KEY = "test-key"


@pytest.fixture
def conf(tmp_path) -> Config:
    return Config(
        email=EmailConfig(base_url=BASE_URL, api_key=API_KEY, timeout=5),
        database=DatabaseConfig(
            connection_string=f"sqlite+aiosqlite:///{tmp_path / 'notifier.db'}",
        ),
    )


@pytest_asyncio.fixture
async def engine(conf):
    engine = create_engine(conf.database)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def add_rows(session_factory):
    """Insert ORM rows in their own committed session."""

    async def _add(*rows):
        async with get_db(session_factory) as session:
            session.add_all(rows)

    return _add
