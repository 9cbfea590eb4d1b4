"""Application layer DI providers."""

from dishka import Scope, provide

from hubauth.application.usecase.auth import (
    CompleteLoginUseCase,
    ReconcileIdentityUseCase,
)
from hubauth.config import AuthSettings
from hubauth.domain.repository import AccountLinkStore
from hubauth.domain.service import ApiKeyService, AuthService, RememberMeService
from hubauth.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    @provide(scope=Scope.REQUEST)
    def get_reconcile_identity_use_case(
        self,
        store: AccountLinkStore,
        remember_me_service: RememberMeService,
        api_key_service: ApiKeyService,
        auth_settings: AuthSettings,
    ) -> ReconcileIdentityUseCase:
        """Provide reconcile identity use case."""
        return ReconcileIdentityUseCase(
            store=store,
            remember_me_service=remember_me_service,
            api_key_service=api_key_service,
            auth_settings=auth_settings,
        )

    @provide(scope=Scope.REQUEST)
    def get_complete_login_use_case(
        self,
        auth_service: AuthService,
        reconcile_identity: ReconcileIdentityUseCase,
    ) -> CompleteLoginUseCase:
        """Provide complete login use case."""
        return CompleteLoginUseCase(
            auth_service=auth_service,
            reconcile_identity=reconcile_identity,
        )
