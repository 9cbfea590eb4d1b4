"""API key domain service."""

import secrets

import logfire

from hubauth.domain.repository import AccountLinkStore
from hubauth.domain.value import AccountId

from .base import Service

API_KEY_PREFIX = "sk_"


def generate_api_key() -> str:
    """Random opaque API key."""
    return API_KEY_PREFIX + secrets.token_urlsafe(24)


class ApiKeyService(Service):
    """Hands out account API keys at the end of an SSO round trip."""

    def __init__(self, store: AccountLinkStore) -> None:
        """Initialize API key service.

        Args:
            store: Account link store
        """
        self.store = store

    async def regenerate(self, account_id: AccountId) -> str:
        """Replace the account's API key with a new one."""
        api_key = generate_api_key()
        await self.store.save_api_key(account_id, api_key)
        logfire.info("API key regenerated", account_id=str(account_id))
        return api_key

    async def provision(self, account_id: AccountId, new_account: bool) -> str:
        """Return an API key for the account.

        New accounts always get a fresh key. Existing accounts keep their key;
        one is generated if they do not have one yet.

        Args:
            account_id: Account to provision for
            new_account: Whether the account was just created

        Returns:
            The API key
        """
        with logfire.span(
            "api_key_service.provision",
            account_id=str(account_id),
            new_account=new_account,
        ):
            if new_account:
                return await self.regenerate(account_id)

            api_key = await self.store.get_api_key(account_id)
            if not api_key:
                logfire.info(
                    "No API key yet, generating one", account_id=str(account_id)
                )
                return await self.regenerate(account_id)
            return api_key
