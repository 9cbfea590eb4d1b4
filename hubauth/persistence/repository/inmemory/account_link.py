"""In-memory account link store for testing."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

from hubauth.domain.error import AlreadyExistsError, EmailTakenError, NotFoundError
from hubauth.domain.model import (
    Account,
    ExternalIdentityLink,
    RememberMeRecord,
    SignedInPayload,
)
from hubauth.domain.repository.account_link import AccountLinkStore
from hubauth.domain.value import AccountId, AuthStrategy, ServerSettings


class InMemoryAccountLinkStore(AccountLinkStore):
    """In-memory implementation of AccountLinkStore for testing.

    ``email_probe_delays`` maps an email address to a delay in seconds applied
    to ``find_account_by_email``, so tests can control which concurrent probe
    finishes first.
    """

    def __init__(self, email_probe_delays: Optional[dict[str, float]] = None) -> None:
        self._accounts: dict[AccountId, Account] = {}
        self._links: dict[tuple[AuthStrategy, str], ExternalIdentityLink] = {}
        self._remember_me: dict[str, RememberMeRecord] = {}
        self.server_settings = ServerSettings()
        self.email_probe_delays = email_probe_delays or {}

        # Recorded side effects
        self.email_probes: list[str] = []
        self.creation_actions: list[tuple[str, AccountId]] = []
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.sign_ins: list[dict[str, Any]] = []

    # Test helpers

    def add_account(
        self,
        email_address: Optional[str] = None,
        first_name: str = "",
        last_name: str = "",
        password_hash: Optional[str] = None,
        banned: bool = False,
    ) -> Account:
        """Seed an account directly."""
        account = Account(
            id=AccountId(uuid4()),
            first_name=first_name,
            last_name=last_name,
            email_address=email_address,
            password_hash=password_hash,
            banned=banned,
        )
        self._accounts[account.id] = account
        return account

    def get_account(self, account_id: AccountId) -> Optional[Account]:
        return self._accounts.get(account_id)

    def ban(self, account_id: AccountId) -> None:
        self._update_account(account_id, banned=True)

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts.values())

    def links_for(self, account_id: AccountId) -> list[ExternalIdentityLink]:
        return [link for link in self._links.values() if link.account_id == account_id]

    def _update_account(self, account_id: AccountId, **update: Any) -> Account:
        account = self._accounts.get(account_id)
        if not account:
            raise NotFoundError("Account", str(account_id))
        account = account.model_copy(update=update)
        self._accounts[account_id] = account
        return account

    # External identity links

    async def find_link(
        self, strategy: AuthStrategy, external_id: str
    ) -> Optional[AccountId]:
        link = self._links.get((strategy, external_id))
        return link.account_id if link else None

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
        key = (strategy, external_id)
        if key in self._links:
            raise AlreadyExistsError(
                "ExternalIdentityLink", f"{strategy.value}-{external_id}"
            )
        self._links[key] = ExternalIdentityLink(
            strategy=strategy,
            external_id=external_id,
            account_id=account_id,
            profile=profile,
            email_address=email_address,
            first_name=first_name,
            last_name=last_name,
        )

    # Accounts

    async def find_account_by_email(self, email_address: str) -> Optional[AccountId]:
        delay = self.email_probe_delays.get(email_address)
        if delay:
            await asyncio.sleep(delay)
        self.email_probes.append(email_address)
        for account in self._accounts.values():
            if account.email_address == email_address:
                return account.id
        return None

    async def create_account(
        self,
        first_name: str,
        last_name: str,
        email_address: Optional[str],
        strategy: AuthStrategy,
        external_id: str,
        profile: dict[str, Any],
    ) -> AccountId:
        if (strategy, external_id) in self._links:
            raise AlreadyExistsError(
                "ExternalIdentityLink", f"{strategy.value}-{external_id}"
            )
        if email_address is not None and any(
            account.email_address == email_address
            for account in self._accounts.values()
        ):
            raise EmailTakenError(email_address)
        account = self.add_account(
            email_address=email_address, first_name=first_name, last_name=last_name
        )
        await self.create_link(
            account.id,
            strategy,
            external_id,
            profile,
            email_address=email_address,
            first_name=first_name,
            last_name=last_name,
        )
        return account.id

    async def do_account_creation_actions(
        self, email_address: str, account_id: AccountId
    ) -> None:
        self.creation_actions.append((email_address, account_id))

    async def is_banned(self, account_id: AccountId) -> bool:
        account = self._accounts.get(account_id)
        return bool(account and account.banned)

    # Remember-me sessions

    async def get_remember_me(self, hash: str) -> Optional[RememberMeRecord]:
        record = self._remember_me.get(hash)
        if record is None or not record.is_live():
            return None
        return record

    async def save_remember_me(
        self,
        account_id: AccountId,
        hash: str,
        payload: SignedInPayload,
        ttl: int,
    ) -> RememberMeRecord:
        record = RememberMeRecord(
            hash=hash,
            account_id=account_id,
            payload=payload,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=ttl),
        )
        self._remember_me[hash] = record
        return record

    async def delete_remember_me_for_account(self, account_id: AccountId) -> None:
        self._remember_me = {
            h: r for h, r in self._remember_me.items() if r.account_id != account_id
        }

    # Settings, API keys, passwords

    async def get_server_settings(self) -> ServerSettings:
        return self.server_settings

    async def get_api_key(self, account_id: AccountId) -> Optional[str]:
        account = self._accounts.get(account_id)
        return account.api_key if account else None

    async def save_api_key(self, account_id: AccountId, api_key: str) -> None:
        self._update_account(account_id, api_key=api_key)

    async def get_password_hash(
        self,
        account_id: Optional[AccountId] = None,
        email_address: Optional[str] = None,
    ) -> Optional[str]:
        for account in self._accounts.values():
            if account_id is not None and account.id == account_id:
                return account.password_hash
            if account_id is None and account.email_address == email_address:
                return account.password_hash
        raise NotFoundError("Account", str(account_id or email_address))

    async def set_password_hash(self, account_id: AccountId, password_hash: str) -> None:
        self._update_account(account_id, password_hash=password_hash)

    # Activity log

    async def log_event(self, event: str, value: dict[str, Any]) -> None:
        self.events.append((event, value))

    async def record_sign_in(
        self,
        account_id: AccountId,
        email_address: Optional[str],
        remember_me: bool,
        ip_address: Optional[str],
    ) -> None:
        self.sign_ins.append(
            {
                "account_id": account_id,
                "email_address": email_address,
                "remember_me": remember_me,
                "ip_address": ip_address,
            }
        )
