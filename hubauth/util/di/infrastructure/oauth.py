"""OAuth infrastructure providers."""

from dishka import Scope, provide
import logfire

from hubauth.adapter.oauth import create_mock_clients
from hubauth.config import Settings
from hubauth.domain.service.auth_service import OAuthClient
from hubauth.domain.value import AuthStrategy
from hubauth.util.di.base import ProviderBase


class OAuthProvider(ProviderBase):
    """OAuth component base."""

    __mock_component__ = "oauth"


class ProdOAuthProvider(OAuthProvider):
    """Production OAuth provider.

    Provider handshakes are performed by clients registered by the
    deployment. Local development runs against the mock clients so the whole
    login flow can be exercised without provider credentials.
    """

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_oauth_clients(self, settings: Settings) -> dict[AuthStrategy, OAuthClient]:
        """Provide dictionary of all OAuth clients by strategy.

        Returns:
            Dictionary mapping AuthStrategy to OAuthClient
        """
        if settings.environment == "development":
            logfire.info("Using mock OAuth clients for local development")
            return create_mock_clients()

        logfire.warn(
            "No OAuth clients configured", environment=settings.environment
        )
        return {}
