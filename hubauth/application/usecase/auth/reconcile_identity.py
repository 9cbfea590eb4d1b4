"""Identity reconciliation use case."""

import asyncio
from typing import Optional, Union

import logfire
from pydantic import BaseModel, ConfigDict, Field

from hubauth.config import AuthSettings
from hubauth.domain.error import (
    AlreadyExistsError,
    BannedError,
    EmailAlreadyRegisteredError,
    EmailTakenError,
    IdentityConflictError,
    ReconciliationError,
)
from hubauth.domain.model import (
    Created,
    Linked,
    ReconciliationOutcome,
    Rejected,
    SignedIn,
    SignedInPayload,
)
from hubauth.domain.repository import AccountLinkStore
from hubauth.domain.service import ApiKeyService, RememberMeService
from hubauth.domain.value import AccountId, ExternalAssertion, SessionContext
from hubauth.util.background import fire_and_forget

from ..base import BaseUseCase


class ReconcileRequest(BaseModel):
    """One external login to reconcile against the account store."""

    assertion: ExternalAssertion
    session: SessionContext = Field(default_factory=SessionContext)
    ip_address: str | None = None  # Recorded with sign-ins and new accounts


class LoginResult(BaseModel):
    """Outcome of a login plus what the HTTP layer has to send back."""

    outcome: ReconciliationOutcome
    remember_me_cookie: str | None = None  # Only set when a new session was issued
    api_key: str | None = None
    target: str  # Where to redirect the client

    @property
    def rejected(self) -> bool:
        return isinstance(self.outcome, Rejected)


class LoginState(BaseModel):
    """Accumulator threaded through the reconciliation steps.

    Each step returns an updated copy; nothing is mutated in place.
    """

    model_config = ConfigDict(frozen=True)

    # Account of a live remember-me session presented with the request
    remember_me_account_id: Optional[AccountId] = None
    account_id: Optional[AccountId] = None
    outcome: Optional[Union[SignedIn, Linked, Created]] = None

    @property
    def authenticated(self) -> bool:
        return self.remember_me_account_id is not None

    @property
    def resolved(self) -> bool:
        return self.outcome is not None

    def resolve(self, outcome: Union[SignedIn, Linked, Created]) -> "LoginState":
        return self.model_copy(
            update={"outcome": outcome, "account_id": outcome.account_id}
        )


class ReconcileIdentityUseCase(BaseUseCase[ReconcileRequest, LoginResult]):
    """Maps an external identity assertion onto exactly one account."""

    def __init__(
        self,
        store: AccountLinkStore,
        remember_me_service: RememberMeService,
        api_key_service: ApiKeyService,
        auth_settings: AuthSettings,
    ) -> None:
        """Initialize reconcile identity use case.

        Args:
            store: Account link store
            remember_me_service: Remember-me session domain service
            api_key_service: API key domain service
            auth_settings: Authentication settings
        """
        self.store = store
        self.remember_me_service = remember_me_service
        self.api_key_service = api_key_service
        self.auth_settings = auth_settings

    async def execute(self, request: ReconcileRequest) -> LoginResult:
        """Reconcile one external login.

        Steps, in this order:
        1. Validate the remember-me cookie, if any
        2. Resolve the external identity link (sign in, link or conflict)
        3. Reject if an account already uses one of the asserted emails
        4. Create a new account with the link
        5. Reject banned accounts, without undoing steps 2-4
        6. Issue a remember-me session unless the caller already had one
        7. Provision an API key if the caller asked for one

        Args:
            request: Assertion, presented session cookies and client address

        Returns:
            Login result; rejections are reported in the outcome, not raised
        """
        assertion = request.assertion
        default_target = f"{self.auth_settings.base_path}/app#login"
        state = LoginState()

        with logfire.span(
            "reconcile_identity",
            strategy=assertion.strategy.value,
            external_id=assertion.external_id,
        ):
            try:
                state = await self._check_remember_me(state, request.session)
                state = await self._resolve_link(state, assertion)
                if not state.resolved:
                    await self._check_existing_emails(assertion)
                    state = await self._create_account(
                        state, assertion, request.ip_address
                    )
                await self._check_banned(state, assertion)
            except ReconciliationError as e:
                logfire.warn(
                    "Login rejected",
                    code=e.code,
                    strategy=assertion.strategy.value,
                    account_id=str(state.account_id) if state.account_id else None,
                )
                return LoginResult(
                    outcome=Rejected(error=e, account_id=state.account_id),
                    target=default_target,
                )

            outcome = state.outcome
            account_id = outcome.account_id

            if not isinstance(outcome, Created):
                fire_and_forget(
                    self.store.record_sign_in(
                        account_id,
                        assertion.primary_email,
                        state.authenticated,
                        request.ip_address,
                    ),
                    name="record_sign_in",
                )

            remember_me_cookie = None
            if not state.authenticated:
                remember_me_cookie = await self._issue_session(account_id, assertion)

            api_key = None
            target = default_target
            if request.session.api_key_request_token:
                api_key = await self.api_key_service.provision(
                    account_id, new_account=isinstance(outcome, Created)
                )
                target = f"https://authenticated?api_key={api_key}"

            logfire.info(
                "Login reconciled",
                outcome=outcome.kind.value,
                account_id=str(account_id),
                session_issued=remember_me_cookie is not None,
            )

            return LoginResult(
                outcome=outcome,
                remember_me_cookie=remember_me_cookie,
                api_key=api_key,
                target=target,
            )

    async def _check_remember_me(
        self, state: LoginState, session: SessionContext
    ) -> LoginState:
        """Mark the caller authenticated if it holds a live remember-me cookie.

        Raises:
            MalformedTokenError: If the cookie does not have four fields
        """
        record = await self.remember_me_service.resolve_session(
            session.remember_me_token
        )
        if record is None:
            return state
        return state.model_copy(update={"remember_me_account_id": record.account_id})

    async def _resolve_link(
        self, state: LoginState, assertion: ExternalAssertion
    ) -> LoginState:
        """Look up the identity link, linking it to the current session if new.

        Returns the state unresolved when there is no link and no session.

        Raises:
            IdentityConflictError: If the identity belongs to another account
        """
        linked = await self.store.find_link(assertion.strategy, assertion.external_id)
        if linked is not None:
            return self._sign_in(state, linked, assertion)

        if state.remember_me_account_id is None:
            return state

        try:
            await self.store.create_link(
                state.remember_me_account_id,
                assertion.strategy,
                assertion.external_id,
                assertion.profile,
                email_address=assertion.primary_email,
                first_name=assertion.first_name,
                last_name=assertion.last_name,
            )
        except AlreadyExistsError:
            logfire.info(
                "Identity was linked concurrently, re-resolving",
                strategy=assertion.strategy.value,
            )
            return await self._re_resolve(state, assertion)

        logfire.info(
            "Identity linked to current session",
            account_id=str(state.remember_me_account_id),
            strategy=assertion.strategy.value,
        )
        return state.resolve(Linked(account_id=state.remember_me_account_id))

    def _sign_in(
        self, state: LoginState, linked: AccountId, assertion: ExternalAssertion
    ) -> LoginState:
        # A link never re-binds to the account of a different session
        if state.authenticated and state.remember_me_account_id != linked:
            raise IdentityConflictError(assertion.strategy.value)
        return state.resolve(SignedIn(account_id=linked))

    async def _re_resolve(
        self, state: LoginState, assertion: ExternalAssertion
    ) -> LoginState:
        """Read back a link another request just created."""
        linked = await self.store.find_link(assertion.strategy, assertion.external_id)
        if linked is None:
            raise AlreadyExistsError(
                "ExternalIdentityLink",
                f"{assertion.strategy.value}-{assertion.external_id}",
            )
        return self._sign_in(state, linked, assertion)

    async def _check_existing_emails(self, assertion: ExternalAssertion) -> None:
        """Probe all asserted emails concurrently.

        The first probe to find an account rejects the attempt; the rest are
        cancelled.

        Raises:
            EmailAlreadyRegisteredError: If an account uses one of the emails
        """
        if not assertion.emails:
            return

        async def probe(email: str) -> tuple[str, Optional[AccountId]]:
            return email, await self.store.find_account_by_email(email)

        tasks = [asyncio.create_task(probe(email)) for email in assertion.emails]
        try:
            for next_done in asyncio.as_completed(tasks):
                email, account_id = await next_done
                if account_id is not None:
                    raise EmailAlreadyRegisteredError(email, assertion.strategy.value)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _create_account(
        self,
        state: LoginState,
        assertion: ExternalAssertion,
        ip_address: str | None,
    ) -> LoginState:
        """Create an account that can be reached through this identity.

        Raises:
            EmailAlreadyRegisteredError: If another account took the email
                after the email probe ran
        """
        email_address = assertion.primary_email
        try:
            account_id = await self.store.create_account(
                assertion.first_name,
                assertion.last_name,
                email_address,
                assertion.strategy,
                assertion.external_id,
                assertion.profile,
            )
        except AlreadyExistsError:
            logfire.info(
                "Account for identity was created concurrently, re-resolving",
                strategy=assertion.strategy.value,
            )
            return await self._re_resolve(state, assertion)
        except EmailTakenError as e:
            # The account that took the email may carry this same identity
            linked = await self.store.find_link(
                assertion.strategy, assertion.external_id
            )
            if linked is not None:
                return self._sign_in(state, linked, assertion)
            raise EmailAlreadyRegisteredError(
                e.email_address, assertion.strategy.value
            )

        logfire.info(
            "New account created",
            account_id=str(account_id),
            strategy=assertion.strategy.value,
            has_email=email_address is not None,
        )

        if email_address is not None:
            await self.store.do_account_creation_actions(email_address, account_id)

        fire_and_forget(
            self.store.log_event(
                "create_account",
                {
                    "account_id": str(account_id),
                    "first_name": assertion.first_name,
                    "last_name": assertion.last_name,
                    "email_address": email_address,
                    "created_by": ip_address,
                },
            ),
            name="log_create_account",
        )

        return state.resolve(
            Created(account_id=account_id, email_address=email_address)
        )

    async def _check_banned(
        self, state: LoginState, assertion: ExternalAssertion
    ) -> None:
        """Raises BannedError if the resolved account is banned."""
        if not await self.store.is_banned(state.account_id):
            return

        server_settings = await self.store.get_server_settings()
        help_email = (
            server_settings.help_email or self.auth_settings.default_help_email
        )
        raise BannedError(str(state.account_id), assertion.primary_email, help_email)

    async def _issue_session(
        self, account_id: AccountId, assertion: ExternalAssertion
    ) -> str:
        payload = SignedInPayload(
            hub=self.auth_settings.hub_name,
            account_id=account_id,
            first_name=assertion.first_name,
            last_name=assertion.last_name,
        )
        cookie_value, _ = await self.remember_me_service.issue_session(
            account_id, payload
        )
        return cookie_value
