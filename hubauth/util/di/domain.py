"""Domain layer DI providers."""

from dishka import Scope, provide

from hubauth.config import AuthSettings
from hubauth.domain.repository import AccountLinkStore
from hubauth.domain.service import (
    ApiKeyService,
    AuthService,
    OAuthClient,
    PasswordService,
    RememberMeService,
)
from hubauth.domain.value import AuthStrategy
from hubauth.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped; each HTTP request gets fresh service
    instances.
    """

    scope = Scope.REQUEST

    @provide
    def get_auth_service(
        self, oauth_clients: dict[AuthStrategy, OAuthClient]
    ) -> AuthService:
        """Provide multi-strategy authentication domain service.

        Args:
            oauth_clients: Dictionary mapping strategies to their OAuth clients

        Returns:
            AuthService configured with all available OAuth clients
        """
        return AuthService(oauth_clients=oauth_clients)

    @provide
    def get_remember_me_service(
        self, store: AccountLinkStore, auth_settings: AuthSettings
    ) -> RememberMeService:
        """Provide remember-me session domain service."""
        return RememberMeService(store=store, auth_settings=auth_settings)

    @provide
    def get_api_key_service(self, store: AccountLinkStore) -> ApiKeyService:
        """Provide API key domain service."""
        return ApiKeyService(store=store)

    @provide
    def get_password_service(
        self, store: AccountLinkStore, auth_settings: AuthSettings
    ) -> PasswordService:
        """Provide password domain service."""
        return PasswordService(store=store, auth_settings=auth_settings)
