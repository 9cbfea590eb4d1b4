"""Authentication domain service."""

from typing import Any

from hubauth.domain.value import AuthStrategy

from .base import Service

# Password sign-in is always available and listed first
EMAIL_STRATEGY = "email"


class OAuthClient:
    """Generic OAuth client interface for all strategies.

    Implementations perform the provider handshake and hand back the
    provider's profile untouched.
    """

    async def initiate_authorization(self, state: str) -> str:
        """Initiate OAuth authorization flow.

        Args:
            state: State parameter for CSRF protection

        Returns:
            Authorization URL to redirect user to
        """
        raise NotImplementedError

    async def complete_authorization(self, code: str, state: str) -> dict[str, Any]:
        """Complete OAuth authorization flow.

        Args:
            code: Authorization code from OAuth callback
            state: State parameter for verification

        Returns:
            Raw provider profile
        """
        raise NotImplementedError


class AuthService(Service):
    """Domain service coordinating the configured OAuth strategies."""

    def __init__(self, oauth_clients: dict[AuthStrategy, OAuthClient]) -> None:
        """Initialize auth service.

        Args:
            oauth_clients: Map of strategy to OAuth client implementation
        """
        self.oauth_clients = oauth_clients

    def configured_strategies(self) -> list[str]:
        """Strategies a user can sign in with, "email" first then alphabetical."""
        return [EMAIL_STRATEGY] + sorted(s.value for s in self.oauth_clients)

    def _client(self, strategy: AuthStrategy) -> OAuthClient:
        client = self.oauth_clients.get(strategy)
        if not client:
            raise ValueError(f"Unsupported strategy: {strategy.value}")
        return client

    async def initiate_login(self, strategy: AuthStrategy, state: str) -> str:
        """Initiate OAuth login flow for any strategy.

        Raises:
            ValueError: If strategy not configured
        """
        return await self._client(strategy).initiate_authorization(state)

    async def complete_login(
        self, strategy: AuthStrategy, code: str, state: str
    ) -> dict[str, Any]:
        """Complete OAuth login flow for any strategy.

        Returns:
            Raw provider profile

        Raises:
            ValueError: If strategy not configured
        """
        return await self._client(strategy).complete_authorization(code, state)
