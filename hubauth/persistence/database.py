"""Async engine, session factory and the per-operation transaction helper."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hubauth.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Engine for ``settings.database.url``, pooled per ``settings.database``.

    SQL is echoed when ``settings.debug`` is on.
    """
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by the stores.

    Rows are read as plain mappings and converted to frozen domain models, so
    nothing is ever flushed implicitly or refreshed after commit.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def transaction(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """One short unit of work.

    Commits when the block exits normally. Any exception, including
    cancellation, rolls back and propagates.

    Args:
        session_factory: Factory for creating sessions

    Yields:
        Session bound to a fresh transaction
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except BaseException:
            await session.rollback()
            raise
