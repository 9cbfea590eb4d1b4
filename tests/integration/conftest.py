"""Integration test fixtures.

The SQL store runs against a throwaway SQLite database file, created from the
same table metadata the migrations mirror.
"""

import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from hubauth.persistence.database import create_session_factory
from hubauth.persistence.repository import SqlAccountLinkStore
from hubauth.persistence.tables import metadata


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hubauth.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield create_session_factory(engine)

    await engine.dispose()


@pytest_asyncio.fixture
async def sql_store(session_factory) -> SqlAccountLinkStore:
    """SQL account link store on the test database."""
    return SqlAccountLinkStore(session_factory)
