"""Complete login use case."""

import logfire
from pydantic import BaseModel, Field

from hubauth.domain.service import AuthService, build_assertion
from hubauth.domain.value import AuthStrategy, SessionContext

from ..base import BaseUseCase
from .reconcile_identity import LoginResult, ReconcileIdentityUseCase, ReconcileRequest


class CompleteLoginRequest(BaseModel):
    """OAuth callback parameters plus the cookies sent with the callback."""

    strategy: AuthStrategy
    code: str  # OAuth authorization code
    state: str  # State parameter for session verification
    session: SessionContext = Field(default_factory=SessionContext)
    ip_address: str | None = None


class CompleteLoginUseCase(BaseUseCase[CompleteLoginRequest, LoginResult]):
    """Finish the provider handshake and reconcile the returned identity."""

    def __init__(
        self,
        auth_service: AuthService,
        reconcile_identity: ReconcileIdentityUseCase,
    ) -> None:
        """Initialize complete login use case.

        Args:
            auth_service: Authentication domain service (handles all strategies)
            reconcile_identity: Identity reconciliation use case
        """
        self.auth_service = auth_service
        self.reconcile_identity = reconcile_identity

    async def execute(self, request: CompleteLoginRequest) -> LoginResult:
        """Complete OAuth and reconcile.

        Raises:
            ValueError: If the strategy is not configured or OAuth fails
        """
        profile = await self.auth_service.complete_login(
            request.strategy, request.code, request.state
        )
        assertion = build_assertion(request.strategy, profile)

        logfire.info(
            "OAuth completed",
            strategy=assertion.strategy.value,
            external_id=assertion.external_id,
            email_count=len(assertion.emails),
        )

        return await self.reconcile_identity.execute(
            ReconcileRequest(
                assertion=assertion,
                session=request.session,
                ip_address=request.ip_address,
            )
        )
