"""Unit tests for ReconcileIdentityUseCase."""

import asyncio
from typing import Any

from dishka import AsyncContainer
import pytest

from hubauth.config import AuthSettings
from hubauth.application.usecase.auth import (
    ReconcileIdentityUseCase,
    ReconcileRequest,
)
from hubauth.domain.error import AlreadyExistsError, EmailTakenError
from hubauth.domain.model import Created, Linked, Rejected, SignedIn, SignedInPayload
from hubauth.domain.repository import AccountLinkStore
from hubauth.domain.service import ApiKeyService, RememberMeService
from hubauth.domain.value import AccountId, AuthStrategy, ServerSettings, SessionContext
from hubauth.persistence.repository.inmemory import InMemoryAccountLinkStore
from tests.harness import create_env_fixture, make_assertion, settle

# Unit test fixture
unit_env = create_env_fixture()


def make_use_case(
    store: InMemoryAccountLinkStore, auth_settings: AuthSettings
) -> ReconcileIdentityUseCase:
    return ReconcileIdentityUseCase(
        store=store,
        remember_me_service=RememberMeService(store, auth_settings),
        api_key_service=ApiKeyService(store),
        auth_settings=auth_settings,
    )


async def login_cookie(
    store: InMemoryAccountLinkStore, auth_settings: AuthSettings, account_id: AccountId
) -> str:
    """Issue a live remember-me cookie for an account."""
    service = RememberMeService(store, auth_settings)
    cookie_value, _ = await service.issue_session(
        account_id, SignedInPayload(hub=auth_settings.hub_name, account_id=account_id)
    )
    return cookie_value


class TestReconcileIdentity:
    """End-to-end reconciliation scenarios against the in-memory store."""

    @pytest.mark.asyncio
    async def test_first_login_creates_account(self, auth_settings: AuthSettings):
        """A new identity with no session and unused email creates an account."""
        # Arrange
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)

        # Act
        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(
                    external_id=42, emails=["a@x.com"], full_name="Ada Lovelace"
                ),
                ip_address="10.0.0.1",
            )
        )
        await settle()

        # Assert
        assert isinstance(result.outcome, Created)
        assert result.outcome.email_address == "a@x.com"
        assert result.remember_me_cookie is not None
        assert result.api_key is None
        assert result.target == "/app#login"

        account = store.get_account(result.outcome.account_id)
        assert account.email_address == "a@x.com"
        assert (account.first_name, account.last_name) == ("Ada", "Lovelace")
        assert await store.find_link(AuthStrategy.GITHUB, "42") == account.id

        assert store.creation_actions == [("a@x.com", account.id)]
        assert store.events == [
            (
                "create_account",
                {
                    "account_id": str(account.id),
                    "first_name": "Ada",
                    "last_name": "Lovelace",
                    "email_address": "a@x.com",
                    "created_by": "10.0.0.1",
                },
            )
        ]
        # New accounts are not recorded as sign-ins
        assert store.sign_ins == []

    @pytest.mark.asyncio
    async def test_issued_cookie_signs_in_as_new_account(
        self, auth_settings: AuthSettings
    ):
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(emails=["a@x.com"], full_name="Ada Lovelace")
            )
        )

        record = await RememberMeService(store, auth_settings).resolve_session(
            result.remember_me_cookie
        )
        assert record.account_id == result.outcome.account_id
        assert record.payload.hub == "test-hub"
        assert record.payload.first_name == "Ada"
        assert record.payload.last_name == "Lovelace"

    @pytest.mark.asyncio
    async def test_second_login_signs_in_same_account(
        self, auth_settings: AuthSettings
    ):
        """Logging in again with the same identity reaches the same account."""
        # Arrange
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)
        first = await use_case.execute(
            ReconcileRequest(assertion=make_assertion(emails=["a@x.com"]))
        )

        # Act
        second = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(emails=["a@x.com"]), ip_address="10.0.0.2"
            )
        )
        await settle()

        # Assert
        assert isinstance(second.outcome, SignedIn)
        assert second.outcome.account_id == first.outcome.account_id
        assert second.remember_me_cookie is not None
        assert second.remember_me_cookie != first.remember_me_cookie
        assert len(store.accounts) == 1
        assert store.sign_ins == [
            {
                "account_id": first.outcome.account_id,
                "email_address": "a@x.com",
                "remember_me": False,
                "ip_address": "10.0.0.2",
            }
        ]

    @pytest.mark.asyncio
    async def test_email_already_registered_rejects(self, auth_settings: AuthSettings):
        """A new identity asserting a used email is refused."""
        # Arrange
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)
        await use_case.execute(
            ReconcileRequest(assertion=make_assertion(external_id=42, emails=["a@x.com"]))
        )

        # Act
        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(
                    strategy=AuthStrategy.GOOGLE, external_id=99, emails=["A@X.com"]
                )
            )
        )

        # Assert
        assert isinstance(result.outcome, Rejected)
        assert result.rejected
        assert result.outcome.code == "email_registered"
        assert "a@x.com" in result.outcome.reason
        assert "link google" in result.outcome.reason
        assert result.remember_me_cookie is None
        assert len(store.accounts) == 1
        assert await store.find_link(AuthStrategy.GOOGLE, "99") is None

    @pytest.mark.asyncio
    async def test_live_session_links_new_identity(self, auth_settings: AuthSettings):
        """A signed-in caller attaches a new identity to their own account."""
        # Arrange
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)
        first = await use_case.execute(
            ReconcileRequest(assertion=make_assertion(external_id=42, emails=["a@x.com"]))
        )
        account_id = first.outcome.account_id

        # Act
        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(
                    strategy=AuthStrategy.GOOGLE,
                    external_id=99,
                    emails=["a@x.com"],
                    first_name="Ada",
                ),
                session=SessionContext(remember_me_token=first.remember_me_cookie),
            )
        )
        await settle()

        # Assert
        assert isinstance(result.outcome, Linked)
        assert result.outcome.account_id == account_id
        assert result.remember_me_cookie is None
        assert await store.find_link(AuthStrategy.GOOGLE, "99") == account_id
        google_link = next(
            link
            for link in store.links_for(account_id)
            if link.strategy == AuthStrategy.GOOGLE
        )
        assert google_link.email_address == "a@x.com"
        assert google_link.first_name == "Ada"
        assert store.sign_ins[-1]["remember_me"] is True

    @pytest.mark.asyncio
    async def test_live_session_same_account_signs_in(
        self, auth_settings: AuthSettings
    ):
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)
        first = await use_case.execute(ReconcileRequest(assertion=make_assertion()))

        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(),
                session=SessionContext(remember_me_token=first.remember_me_cookie),
            )
        )

        assert isinstance(result.outcome, SignedIn)
        assert result.outcome.account_id == first.outcome.account_id
        assert result.remember_me_cookie is None

    @pytest.mark.asyncio
    async def test_identity_of_other_account_conflicts(
        self, auth_settings: AuthSettings
    ):
        """An identity never moves to the account of a different session."""
        # Arrange
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)
        owner = await use_case.execute(ReconcileRequest(assertion=make_assertion()))
        other = store.add_account(email_address="b@x.com")
        cookie = await login_cookie(store, auth_settings, other.id)

        # Act
        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(),
                session=SessionContext(remember_me_token=cookie),
            )
        )

        # Assert
        assert isinstance(result.outcome, Rejected)
        assert result.outcome.code == "identity_conflict"
        assert "already attached to another account" in result.outcome.reason
        assert await store.find_link(AuthStrategy.GITHUB, "42") == owner.outcome.account_id

    @pytest.mark.asyncio
    async def test_malformed_cookie_rejects(self, auth_settings: AuthSettings):
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(),
                session=SessionContext(remember_me_token="not$a$token"),
            )
        )

        assert isinstance(result.outcome, Rejected)
        assert result.outcome.code == "malformed_token"
        assert result.outcome.reason == "badly formatted remember_me cookie"
        assert store.accounts == []

    @pytest.mark.asyncio
    async def test_unknown_cookie_is_ignored(self, auth_settings: AuthSettings):
        """A well-formed but unknown cookie behaves like no cookie."""
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(),
                session=SessionContext(remember_me_token="sha512$salt$10$stale"),
            )
        )

        assert isinstance(result.outcome, Created)
        assert result.remember_me_cookie is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "cookie_value", ["shake_128$salt$1$secret", "sha512$salt$2000000$secret"]
    )
    async def test_unusable_cookie_continues_signed_out(
        self, auth_settings: AuthSettings, cookie_value
    ):
        """Cookies that cannot or may not be hashed never fail the login."""
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(),
                session=SessionContext(remember_me_token=cookie_value),
            )
        )

        assert isinstance(result.outcome, Created)
        assert result.remember_me_cookie is not None

    @pytest.mark.asyncio
    async def test_no_email_creates_account_without_email(
        self, auth_settings: AuthSettings
    ):
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(
                    strategy=AuthStrategy.TWITTER, external_id="783214"
                )
            )
        )

        assert isinstance(result.outcome, Created)
        assert result.outcome.email_address is None
        assert store.email_probes == []
        assert store.creation_actions == []

    @pytest.mark.asyncio
    async def test_all_emails_are_probed(self, auth_settings: AuthSettings):
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(emails=["a@x.com", "b@x.com", "c@x.com"])
            )
        )

        assert isinstance(result.outcome, Created)
        assert result.outcome.email_address == "a@x.com"
        assert sorted(store.email_probes) == ["a@x.com", "b@x.com", "c@x.com"]

    @pytest.mark.asyncio
    async def test_first_email_probe_to_match_wins(self, auth_settings: AuthSettings):
        """The rejection names whichever registered email was found first."""
        # Arrange
        store = InMemoryAccountLinkStore(email_probe_delays={"slow@x.com": 0.05})
        store.add_account(email_address="slow@x.com")
        store.add_account(email_address="fast@x.com")
        use_case = make_use_case(store, auth_settings)

        # Act
        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(emails=["slow@x.com", "fast@x.com"])
            )
        )

        # Assert
        assert result.outcome.code == "email_registered"
        assert "fast@x.com" in result.outcome.reason
        # The slower probe was cancelled before it finished
        assert store.email_probes == ["fast@x.com"]

    @pytest.mark.asyncio
    async def test_banned_account_rejected(self, auth_settings: AuthSettings):
        # Arrange
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)
        first = await use_case.execute(
            ReconcileRequest(assertion=make_assertion(emails=["a@x.com"]))
        )
        store.ban(first.outcome.account_id)

        # Act
        result = await use_case.execute(
            ReconcileRequest(assertion=make_assertion(emails=["a@x.com"]))
        )
        await settle()

        # Assert
        assert isinstance(result.outcome, Rejected)
        assert result.outcome.code == "banned"
        assert result.outcome.account_id == first.outcome.account_id
        assert "is BANNED" in result.outcome.reason
        assert auth_settings.default_help_email in result.outcome.reason
        assert result.remember_me_cookie is None
        assert store.sign_ins == []

    @pytest.mark.asyncio
    async def test_banned_message_uses_configured_help_email(
        self, auth_settings: AuthSettings
    ):
        store = InMemoryAccountLinkStore()
        store.server_settings = ServerSettings(help_email="support@hub.org")
        use_case = make_use_case(store, auth_settings)
        first = await use_case.execute(ReconcileRequest(assertion=make_assertion()))
        store.ban(first.outcome.account_id)

        result = await use_case.execute(ReconcileRequest(assertion=make_assertion()))

        assert "support@hub.org" in result.outcome.reason

    @pytest.mark.asyncio
    async def test_ban_check_does_not_undo_creation(
        self, auth_settings: AuthSettings
    ):
        """An account banned right after creation keeps its account and link."""

        class BanOnCreateStore(InMemoryAccountLinkStore):
            async def create_account(self, *args: Any, **kwargs: Any) -> AccountId:
                account_id = await super().create_account(*args, **kwargs)
                self.ban(account_id)
                return account_id

        store = BanOnCreateStore()
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(assertion=make_assertion(emails=["a@x.com"]))
        )

        assert result.outcome.code == "banned"
        assert len(store.accounts) == 1
        assert await store.find_link(AuthStrategy.GITHUB, "42") == result.outcome.account_id

    @pytest.mark.asyncio
    async def test_concurrent_account_creation_signs_into_winner(
        self, auth_settings: AuthSettings
    ):
        """Losing the create race reads back the winner's link."""

        class RacingStore(InMemoryAccountLinkStore):
            async def create_account(self, first_name, last_name, email_address,
                                     strategy, external_id, profile) -> AccountId:
                # Another request creates the account first
                self.winner = await super().create_account(
                    first_name, last_name, None, strategy, external_id, profile
                )
                raise AlreadyExistsError("ExternalIdentityLink", external_id)

        store = RacingStore()
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(assertion=make_assertion(emails=["a@x.com"]))
        )
        await settle()

        assert isinstance(result.outcome, SignedIn)
        assert result.outcome.account_id == store.winner
        assert result.remember_me_cookie is not None
        assert len(store.accounts) == 1
        assert store.events == []

    @pytest.mark.asyncio
    async def test_concurrent_new_identities_with_same_email(
        self, auth_settings: AuthSettings
    ):
        """Two new identities racing for one email yield one account."""
        # Arrange
        store = InMemoryAccountLinkStore(email_probe_delays={"a@x.com": 0.01})
        use_case = make_use_case(store, auth_settings)
        requests = [
            ReconcileRequest(
                assertion=make_assertion(
                    strategy=AuthStrategy.GITHUB, external_id=1, emails=["a@x.com"]
                )
            ),
            ReconcileRequest(
                assertion=make_assertion(
                    strategy=AuthStrategy.GOOGLE, external_id=2, emails=["a@x.com"]
                )
            ),
        ]

        # Act
        results = await asyncio.gather(*(use_case.execute(r) for r in requests))
        await settle()

        # Assert
        created = [r for r in results if isinstance(r.outcome, Created)]
        rejected = [r for r in results if isinstance(r.outcome, Rejected)]
        assert len(created) == 1
        assert len(rejected) == 1
        assert rejected[0].outcome.code == "email_registered"
        assert "a@x.com" in rejected[0].outcome.reason
        assert rejected[0].remember_me_cookie is None
        assert len(store.accounts) == 1

    @pytest.mark.asyncio
    async def test_email_taken_by_same_identity_signs_in(
        self, auth_settings: AuthSettings
    ):
        """Losing the email to a concurrent login of this identity signs in."""

        class RacingStore(InMemoryAccountLinkStore):
            async def create_account(self, first_name, last_name, email_address,
                                     strategy, external_id, profile) -> AccountId:
                # The same identity wins the unique email first
                self.winner = await super().create_account(
                    first_name, last_name, email_address, strategy, external_id, profile
                )
                raise EmailTakenError(email_address)

        store = RacingStore()
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(assertion=make_assertion(emails=["a@x.com"]))
        )
        await settle()

        assert isinstance(result.outcome, SignedIn)
        assert result.outcome.account_id == store.winner
        assert len(store.accounts) == 1

    @pytest.mark.asyncio
    async def test_concurrent_link_to_same_account_signs_in(
        self, auth_settings: AuthSettings
    ):
        class RacingStore(InMemoryAccountLinkStore):
            async def create_link(self, account_id, strategy, external_id, profile,
                                  **kwargs) -> None:
                await super().create_link(account_id, strategy, external_id, profile)
                raise AlreadyExistsError("ExternalIdentityLink", external_id)

        store = RacingStore()
        account = store.add_account()
        cookie = await login_cookie(store, auth_settings, account.id)
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(),
                session=SessionContext(remember_me_token=cookie),
            )
        )

        assert isinstance(result.outcome, SignedIn)
        assert result.outcome.account_id == account.id

    @pytest.mark.asyncio
    async def test_concurrent_link_to_other_account_conflicts(
        self, auth_settings: AuthSettings
    ):
        """Losing the link race to another account is a conflict, not a re-bind."""

        class RacingStore(InMemoryAccountLinkStore):
            async def create_link(self, account_id, strategy, external_id, profile,
                                  **kwargs) -> None:
                other = self.add_account()
                await super().create_link(other.id, strategy, external_id, profile)
                raise AlreadyExistsError("ExternalIdentityLink", external_id)

        store = RacingStore()
        account = store.add_account()
        cookie = await login_cookie(store, auth_settings, account.id)
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(),
                session=SessionContext(remember_me_token=cookie),
            )
        )

        assert result.outcome.code == "identity_conflict"
        assert await store.find_link(AuthStrategy.GITHUB, "42") != account.id

    @pytest.mark.asyncio
    async def test_api_key_request_provisions_key(self, auth_settings: AuthSettings):
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)

        result = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(),
                session=SessionContext(api_key_request_token="1"),
            )
        )

        assert isinstance(result.outcome, Created)
        assert result.api_key.startswith("sk_")
        assert result.target == f"https://authenticated?api_key={result.api_key}"
        assert store.get_account(result.outcome.account_id).api_key == result.api_key

    @pytest.mark.asyncio
    async def test_api_key_request_keeps_existing_key(
        self, auth_settings: AuthSettings
    ):
        store = InMemoryAccountLinkStore()
        use_case = make_use_case(store, auth_settings)
        first = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(),
                session=SessionContext(api_key_request_token="1"),
            )
        )

        second = await use_case.execute(
            ReconcileRequest(
                assertion=make_assertion(),
                session=SessionContext(api_key_request_token="1"),
            )
        )

        assert isinstance(second.outcome, SignedIn)
        assert second.api_key == first.api_key

    @pytest.mark.asyncio
    async def test_default_target_uses_base_path(self):
        store = InMemoryAccountLinkStore()
        settings = AuthSettings(hash_iterations=1, base_path="/hub")
        use_case = make_use_case(store, settings)

        result = await use_case.execute(ReconcileRequest(assertion=make_assertion()))

        assert result.target == "/hub/app#login"

    @pytest.mark.asyncio
    async def test_background_logging_failure_does_not_fail_login(
        self, auth_settings: AuthSettings
    ):
        class BrokenLogStore(InMemoryAccountLinkStore):
            async def log_event(self, event, value) -> None:
                raise ConnectionError("log unavailable")

            async def record_sign_in(self, *args, **kwargs) -> None:
                raise ConnectionError("log unavailable")

        store = BrokenLogStore()
        use_case = make_use_case(store, auth_settings)

        created = await use_case.execute(ReconcileRequest(assertion=make_assertion()))
        signed_in = await use_case.execute(ReconcileRequest(assertion=make_assertion()))
        await settle()

        assert isinstance(created.outcome, Created)
        assert isinstance(signed_in.outcome, SignedIn)


class TestReconcileIdentityFromContainer:
    """The wired use case runs against the mock store."""

    @pytest.mark.asyncio
    async def test_container_wiring(self, unit_env: AsyncContainer):
        # Arrange
        use_case = await unit_env.get(ReconcileIdentityUseCase)
        store = await unit_env.get(AccountLinkStore)

        # Act
        result = await use_case.execute(
            ReconcileRequest(assertion=make_assertion(emails=["a@x.com"]))
        )

        # Assert
        assert isinstance(result.outcome, Created)
        assert isinstance(store, InMemoryAccountLinkStore)
        assert await store.find_account_by_email("a@x.com") == result.outcome.account_id
