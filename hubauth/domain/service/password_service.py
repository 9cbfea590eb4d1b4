"""Password domain service."""

from typing import Optional

import logfire

from hubauth.config import AuthSettings
from hubauth.domain.error import InvalidInputError
from hubauth.domain.repository import AccountLinkStore
from hubauth.domain.value import AccountId
from hubauth.util.hashing import password_hash, verify_password

from .base import Service


class PasswordService(Service):
    """Hashes and checks account passwords."""

    def __init__(self, store: AccountLinkStore, auth_settings: AuthSettings) -> None:
        """Initialize password service.

        Args:
            store: Account link store
            auth_settings: Authentication settings (hash policy)
        """
        self.store = store
        self.auth_settings = auth_settings

    def hash_password(self, password: str) -> str:
        """Hash a password with the current policy and a fresh salt."""
        return password_hash(
            password,
            self.auth_settings.hash_algorithm,
            self.auth_settings.hash_salt_length,
            self.auth_settings.hash_iterations,
        )

    async def is_password_correct(
        self,
        password: str,
        password_hash: Optional[str] = None,
        account_id: Optional[AccountId] = None,
        email_address: Optional[str] = None,
        allow_empty_password: bool = False,
    ) -> bool:
        """Check a password.

        Exactly one of password_hash, account_id or email_address identifies
        what to check against. With allow_empty_password, an account that has
        no password accepts anything; if a password and an account_id are given
        that password is set on the account. This is only used when a
        passport-only account sets its first email address and password.

        Raises:
            InvalidInputError: If none of the lookup keys is given
            NotFoundError: If the account does not exist
        """
        if password_hash is not None:
            return verify_password(password, password_hash)

        if account_id is None and email_address is None:
            raise InvalidInputError(
                "One of password_hash, account_id, or email_address must be specified."
            )

        with logfire.span(
            "password_service.is_password_correct",
            account_id=str(account_id) if account_id else None,
        ):
            stored = await self.store.get_password_hash(
                account_id=account_id, email_address=email_address
            )

            if allow_empty_password and not stored:
                if password and account_id is not None:
                    await self.change_password(
                        account_id, password, invalidate_remember_me=False
                    )
                return True

            correct = verify_password(password, stored)
            if not correct:
                logfire.info("Incorrect password", account_id=str(account_id))
            return correct

    async def change_password(
        self,
        account_id: AccountId,
        password: str,
        invalidate_remember_me: bool = True,
    ) -> None:
        """Set a new password, by default signing out every remembered session."""
        await self.store.set_password_hash(account_id, self.hash_password(password))
        if invalidate_remember_me:
            await self.store.delete_remember_me_for_account(account_id)
        logfire.info(
            "Password changed",
            account_id=str(account_id),
            invalidate_remember_me=invalidate_remember_me,
        )
