"""Persistence infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
import logfire
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from hubauth.config import Settings
from hubauth.domain.repository import AccountLinkStore
from hubauth.persistence.database import create_engine, create_session_factory
from hubauth.persistence.repository import SqlAccountLinkStore
from hubauth.util.di.base import ProviderBase
from hubauth.util.observability import instrument_sqlalchemy


class PersistenceProvider(ProviderBase):
    """Persistence component base."""

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Production persistence provider using PostgreSQL."""

    __is_mock__ = False

    scope = Scope.APP

    @provide(scope=Scope.APP)
    async def get_engine(self, settings: Settings) -> AsyncIterator[AsyncEngine]:
        """Provide database engine, disposed when the container closes."""
        engine = create_engine(settings)
        # Instrument SQLAlchemy for observability
        instrument_sqlalchemy(engine)
        yield engine
        await engine.dispose()
        logfire.info("Database engine disposed")

    @provide(scope=Scope.APP)
    def get_session_factory(
        self, engine: AsyncEngine
    ) -> async_sessionmaker[AsyncSession]:
        """Provide session factory."""
        return create_session_factory(engine)

    @provide(scope=Scope.APP)
    def get_account_link_store(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AccountLinkStore:
        """Provide account link store.

        The store opens one short transaction per operation, so a single
        instance serves every request.
        """
        return SqlAccountLinkStore(session_factory)
