"""Account link store interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from hubauth.domain.model import RememberMeRecord, SignedInPayload
from hubauth.domain.value import AccountId, AuthStrategy, ServerSettings


class AccountLinkStore(ABC):
    """Persistent operations the login protocol depends on.

    The store is the only shared state between concurrent requests and the
    sole arbiter of uniqueness: it must refuse a second link for the same
    (strategy, external_id) pair by raising AlreadyExistsError.
    """

    # External identity links

    @abstractmethod
    async def find_link(
        self, strategy: AuthStrategy, external_id: str
    ) -> Optional[AccountId]:
        """Find the account bound to an external identity.

        Args:
            strategy: Sign-in strategy
            external_id: The user's id with that provider

        Returns:
            The bound account id, or None
        """
        pass

    @abstractmethod
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
        pass

    # Accounts

    @abstractmethod
    async def find_account_by_email(self, email_address: str) -> Optional[AccountId]:
        """Find an account by (lowercase) email address."""
        pass

    @abstractmethod
    async def create_account(
        self,
        first_name: str,
        last_name: str,
        email_address: Optional[str],
        strategy: AuthStrategy,
        external_id: str,
        profile: dict[str, Any],
    ) -> AccountId:
        """Create an account together with its first external identity link.

        Both records are created or neither is.

        Returns:
            The new account id

        Raises:
            AlreadyExistsError: If the identity is already bound
            EmailTakenError: If another account already has the email address
        """
        pass

    @abstractmethod
    async def do_account_creation_actions(
        self, email_address: str, account_id: AccountId
    ) -> None:
        """Apply actions that were waiting for an account with this email."""
        pass

    @abstractmethod
    async def is_banned(self, account_id: AccountId) -> bool:
        """Check whether an account is banned."""
        pass

    # Remember-me sessions

    @abstractmethod
    async def get_remember_me(self, hash: str) -> Optional[RememberMeRecord]:
        """Fetch a live remember-me record by hash.

        Expired records are never returned.
        """
        pass

    @abstractmethod
    async def save_remember_me(
        self,
        account_id: AccountId,
        hash: str,
        payload: SignedInPayload,
        ttl: int,
    ) -> RememberMeRecord:
        """Store a remember-me record valid for ttl seconds."""
        pass

    @abstractmethod
    async def delete_remember_me_for_account(self, account_id: AccountId) -> None:
        """Drop all remember-me records of an account."""
        pass

    # Settings, API keys, passwords

    @abstractmethod
    async def get_server_settings(self) -> ServerSettings:
        """Fetch server-wide settings."""
        pass

    @abstractmethod
    async def get_api_key(self, account_id: AccountId) -> Optional[str]:
        """Fetch the account's API key, if it has one."""
        pass

    @abstractmethod
    async def save_api_key(self, account_id: AccountId, api_key: str) -> None:
        """Replace the account's API key."""
        pass

    @abstractmethod
    async def get_password_hash(
        self,
        account_id: Optional[AccountId] = None,
        email_address: Optional[str] = None,
    ) -> Optional[str]:
        """Fetch an account's password hash by id or email.

        Returns:
            The stored hash, or None if the account has no password

        Raises:
            NotFoundError: If no such account exists
        """
        pass

    @abstractmethod
    async def set_password_hash(self, account_id: AccountId, password_hash: str) -> None:
        """Replace an account's password hash."""
        pass

    # Activity log

    @abstractmethod
    async def log_event(self, event: str, value: dict[str, Any]) -> None:
        """Append an event to the activity log."""
        pass

    @abstractmethod
    async def record_sign_in(
        self,
        account_id: AccountId,
        email_address: Optional[str],
        remember_me: bool,
        ip_address: Optional[str],
    ) -> None:
        """Record a successful sign-in."""
        pass
