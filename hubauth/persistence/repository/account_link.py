"""Account link store implementation using SQLAlchemy."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import Table, delete, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hubauth.domain.error import AlreadyExistsError, EmailTakenError, NotFoundError
from hubauth.domain.model import (
    Account,
    ExternalIdentityLink,
    RememberMeRecord,
    SignedInPayload,
)
from hubauth.domain.repository.account_link import AccountLinkStore
from hubauth.domain.value import AccountId, AuthStrategy, ServerSettings
from hubauth.persistence.database import transaction
from hubauth.persistence.mappers import (
    account_to_dict,
    link_to_dict,
    remember_me_to_dict,
    row_to_remember_me,
)
from hubauth.persistence.tables import (
    account_creation_actions_table,
    accounts_table,
    central_log_table,
    passports_table,
    remember_me_table,
    server_settings_table,
    sign_ins_table,
)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlAccountLinkStore(AccountLinkStore):
    """SQL implementation of AccountLinkStore.

    Every operation runs in its own short transaction, so the concurrent
    email probes and background logging never share a connection.
    Uniqueness of external identities is enforced by the passports primary
    key with ``INSERT ... ON CONFLICT DO NOTHING``.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize store with a session factory.

        Args:
            session_factory: SQLAlchemy async session factory
        """
        self.session_factory = session_factory

    def _insert(self, session: AsyncSession, table: Table):
        dialect = session.get_bind().dialect.name
        try:
            return _DIALECT_INSERTS[dialect](table)
        except KeyError:
            raise NotImplementedError(f"Unsupported database dialect: {dialect}")

    async def _insert_link(self, session: AsyncSession, link: ExternalIdentityLink) -> bool:
        """Insert a passport row; False if the identity is already bound."""
        stmt = (
            self._insert(session, passports_table)
            .values(**link_to_dict(link))
            .on_conflict_do_nothing(
                index_elements=[
                    passports_table.c.strategy,
                    passports_table.c.external_id,
                ]
            )
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    # External identity links

    async def find_link(
        self, strategy: AuthStrategy, external_id: str
    ) -> Optional[AccountId]:
        """Find the account bound to an external identity."""
        stmt = select(passports_table.c.account_id).where(
            passports_table.c.strategy == strategy.value,
            passports_table.c.external_id == external_id,
        )
        async with transaction(self.session_factory) as session:
            account_id = (await session.execute(stmt)).scalar_one_or_none()
        return AccountId(account_id) if account_id else None

    async def create_link(
        self,
        account_id: AccountId,
        strategy: AuthStrategy,
        external_id: str,
        profile: dict[str, Any],
        email_address: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> None:
        """Bind an external identity to an existing account.

        Raises:
            AlreadyExistsError: If the identity is already bound
        """
        link = ExternalIdentityLink(
            strategy=strategy,
            external_id=external_id,
            account_id=account_id,
            profile=profile,
            email_address=email_address,
            first_name=first_name,
            last_name=last_name,
        )
        async with transaction(self.session_factory) as session:
            inserted = await self._insert_link(session, link)
        if not inserted:
            raise AlreadyExistsError(
                "ExternalIdentityLink", f"{strategy.value}-{external_id}"
            )

    # Accounts

    async def find_account_by_email(self, email_address: str) -> Optional[AccountId]:
        """Find an account by (lowercase) email address."""
        stmt = select(accounts_table.c.id).where(
            accounts_table.c.email_address == email_address
        )
        async with transaction(self.session_factory) as session:
            account_id = (await session.execute(stmt)).scalar_one_or_none()
        return AccountId(account_id) if account_id else None

    async def create_account(
        self,
        first_name: str,
        last_name: str,
        email_address: Optional[str],
        strategy: AuthStrategy,
        external_id: str,
        profile: dict[str, Any],
    ) -> AccountId:
        """Create an account and its first link in one transaction.

        Raises:
            AlreadyExistsError: If the identity is already bound; nothing is
                written in that case
            EmailTakenError: If the unique email index rejects the account
        """
        account = Account(
            id=AccountId(uuid4()),
            first_name=first_name,
            last_name=last_name,
            email_address=email_address,
        )
        link = ExternalIdentityLink(
            strategy=strategy,
            external_id=external_id,
            account_id=account.id,
            profile=profile,
            email_address=email_address,
            first_name=first_name,
            last_name=last_name,
        )
        async with transaction(self.session_factory) as session:
            try:
                await session.execute(
                    accounts_table.insert().values(**account_to_dict(account))
                )
            except IntegrityError:
                if email_address is None:
                    raise
                raise EmailTakenError(email_address)
            if not await self._insert_link(session, link):
                # Leaving the block with an error rolls the account back
                raise AlreadyExistsError(
                    "ExternalIdentityLink", f"{strategy.value}-{external_id}"
                )
        return account.id

    async def do_account_creation_actions(
        self, email_address: str, account_id: AccountId
    ) -> None:
        """Claim the pending, unexpired actions queued for this email."""
        now = datetime.now(timezone.utc)
        stmt = (
            update(account_creation_actions_table)
            .where(
                account_creation_actions_table.c.email_address == email_address,
                account_creation_actions_table.c.applied_at.is_(None),
                or_(
                    account_creation_actions_table.c.expires_at.is_(None),
                    account_creation_actions_table.c.expires_at > now,
                ),
            )
            .values(account_id=account_id, applied_at=now)
        )
        async with transaction(self.session_factory) as session:
            await session.execute(stmt)

    async def is_banned(self, account_id: AccountId) -> bool:
        """Check whether an account is banned."""
        stmt = select(accounts_table.c.banned).where(accounts_table.c.id == account_id)
        async with transaction(self.session_factory) as session:
            banned = (await session.execute(stmt)).scalar_one_or_none()
        return bool(banned)

    # Remember-me sessions

    async def get_remember_me(self, hash: str) -> Optional[RememberMeRecord]:
        """Fetch a live remember-me record by hash."""
        stmt = select(remember_me_table).where(remember_me_table.c.hash == hash)
        async with transaction(self.session_factory) as session:
            row = (await session.execute(stmt)).mappings().first()

        if not row:
            return None

        record = row_to_remember_me(dict(row))
        return record if record.is_live() else None

    async def save_remember_me(
        self,
        account_id: AccountId,
        hash: str,
        payload: SignedInPayload,
        ttl: int,
    ) -> RememberMeRecord:
        """Store a remember-me record valid for ttl seconds."""
        record = RememberMeRecord(
            hash=hash,
            account_id=account_id,
            payload=payload,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=ttl),
        )
        async with transaction(self.session_factory) as session:
            await session.execute(
                remember_me_table.insert().values(**remember_me_to_dict(record))
            )
        return record

    async def delete_remember_me_for_account(self, account_id: AccountId) -> None:
        """Drop all remember-me records of an account."""
        stmt = delete(remember_me_table).where(
            remember_me_table.c.account_id == account_id
        )
        async with transaction(self.session_factory) as session:
            await session.execute(stmt)

    # Settings, API keys, passwords

    async def get_server_settings(self) -> ServerSettings:
        """Fetch server-wide settings."""
        stmt = select(server_settings_table.c.name, server_settings_table.c.value)
        async with transaction(self.session_factory) as session:
            rows = (await session.execute(stmt)).all()
        values = {name: value for name, value in rows}
        return ServerSettings(help_email=values.get("help_email") or None)

    async def get_api_key(self, account_id: AccountId) -> Optional[str]:
        """Fetch the account's API key, if it has one."""
        stmt = select(accounts_table.c.api_key).where(accounts_table.c.id == account_id)
        async with transaction(self.session_factory) as session:
            return (await session.execute(stmt)).scalar_one_or_none()

    async def save_api_key(self, account_id: AccountId, api_key: str) -> None:
        """Replace the account's API key."""
        await self._update_account(account_id, api_key=api_key)

    async def get_password_hash(
        self,
        account_id: Optional[AccountId] = None,
        email_address: Optional[str] = None,
    ) -> Optional[str]:
        """Fetch an account's password hash by id or email.

        Raises:
            NotFoundError: If no such account exists
        """
        stmt = select(accounts_table.c.password_hash)
        if account_id is not None:
            stmt = stmt.where(accounts_table.c.id == account_id)
        else:
            stmt = stmt.where(accounts_table.c.email_address == email_address)

        async with transaction(self.session_factory) as session:
            row = (await session.execute(stmt)).first()

        if row is None:
            raise NotFoundError("Account", str(account_id or email_address))
        return row.password_hash

    async def set_password_hash(self, account_id: AccountId, password_hash: str) -> None:
        """Replace an account's password hash."""
        await self._update_account(account_id, password_hash=password_hash)

    async def _update_account(self, account_id: AccountId, **values: Any) -> None:
        stmt = (
            update(accounts_table)
            .where(accounts_table.c.id == account_id)
            .values(**values)
        )
        async with transaction(self.session_factory) as session:
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("Account", str(account_id))

    # Activity log

    async def log_event(self, event: str, value: dict[str, Any]) -> None:
        """Append an event to the central log."""
        async with transaction(self.session_factory) as session:
            await session.execute(
                central_log_table.insert().values(
                    id=uuid4(),
                    event=event,
                    value=value,
                    time=datetime.now(timezone.utc),
                )
            )

    async def record_sign_in(
        self,
        account_id: AccountId,
        email_address: Optional[str],
        remember_me: bool,
        ip_address: Optional[str],
    ) -> None:
        """Record a successful sign-in."""
        async with transaction(self.session_factory) as session:
            await session.execute(
                sign_ins_table.insert().values(
                    id=uuid4(),
                    account_id=account_id,
                    email_address=email_address,
                    remember_me=remember_me,
                    ip_address=ip_address,
                    time=datetime.now(timezone.utc),
                )
            )
