"""Mock OAuth clients.

Real provider handshakes live outside this service; these clients stand in for
them in tests and local development. The authorization code selects which
profile the "provider" returns.
"""

from copy import deepcopy
from typing import Any
from urllib.parse import urlencode

import logfire

from hubauth.domain.service.auth_service import OAuthClient
from hubauth.domain.value import AuthStrategy

from .error import OAuthError

# Profiles shaped the way each provider returns them
DEFAULT_PROFILES: dict[AuthStrategy, dict[str, Any]] = {
    AuthStrategy.GITHUB: {
        "id": 4242,
        "username": "mockoctocat",
        "name": "Mona Lisa Octocat",
        "emails": [{"value": "octocat@example.com"}],
    },
    AuthStrategy.GOOGLE: {
        "id": "109876543210",
        "displayName": "Mock Google User",
        "name": {"givenName": "Mock", "familyName": "User"},
        "emails": [{"value": "mock.user@example.com", "type": "account"}],
    },
    AuthStrategy.FACEBOOK: {
        "id": "10155555555555555",
        "displayName": "Mock Facebook User",
    },
    AuthStrategy.TWITTER: {
        "id": 783214,
        "username": "mocktwitter",
        "displayName": "Mock Twitter User",
    },
}

AUTHORIZE_URLS: dict[AuthStrategy, str] = {
    AuthStrategy.FACEBOOK: "https://www.facebook.com/dialog/oauth",
    AuthStrategy.GITHUB: "https://github.com/login/oauth/authorize",
    AuthStrategy.GOOGLE: "https://accounts.google.com/o/oauth2/v2/auth",
    AuthStrategy.TWITTER: "https://twitter.com/i/oauth2/authorize",
}


class MockOAuthClient(OAuthClient):
    """Mock OAuth client for one strategy.

    Returns deterministic test data without making real API calls. Tests
    register extra profiles under an authorization code with
    ``add_profile``; any other code yields the default profile.
    """

    def __init__(self, strategy: AuthStrategy) -> None:
        self.strategy = strategy
        self.profiles: dict[str, dict[str, Any]] = {}

    def add_profile(self, code: str, profile: dict[str, Any]) -> None:
        """Make ``complete_authorization(code, ...)`` return this profile."""
        self.profiles[code] = profile

    async def initiate_authorization(self, state: str) -> str:
        """Return mock authorization URL."""
        query = urlencode({"state": state, "mock": "true"})
        return f"{AUTHORIZE_URLS[self.strategy]}?{query}"

    async def complete_authorization(self, code: str, state: str) -> dict[str, Any]:
        """Return the profile registered for the code.

        Raises:
            OAuthError: If no code is given
        """
        if not code:
            raise OAuthError(f"{self.strategy.value}: missing authorization code")

        profile = self.profiles.get(code, DEFAULT_PROFILES[self.strategy])
        logfire.info(
            "Mock OAuth completed",
            strategy=self.strategy.value,
            registered=code in self.profiles,
        )
        return deepcopy(profile)


def create_mock_clients() -> dict[AuthStrategy, OAuthClient]:
    """One mock client for every supported strategy."""
    return {strategy: MockOAuthClient(strategy) for strategy in AuthStrategy}
