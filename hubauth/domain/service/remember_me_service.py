"""Remember-me session domain service."""

from datetime import datetime, timedelta, timezone

import logfire

from hubauth.config import AuthSettings
from hubauth.domain.error import InvalidInputError
from hubauth.domain.model import RememberMeRecord, SignedInPayload
from hubauth.domain.repository import AccountLinkStore
from hubauth.domain.value import AccountId
from hubauth.util.remember_me import create_session_token, decode_token

from .base import Service


class RememberMeService(Service):
    """Validates presented remember-me cookies and issues new ones."""

    def __init__(self, store: AccountLinkStore, auth_settings: AuthSettings) -> None:
        """Initialize remember-me service.

        Args:
            store: Account link store
            auth_settings: Authentication settings (hash policy and TTL)
        """
        self.store = store
        self.auth_settings = auth_settings

    async def resolve_session(self, cookie_value: str | None) -> RememberMeRecord | None:
        """Resolve a remember-me cookie to a live session record.

        Only a structurally malformed cookie is an error. Unusable hash
        parameters (including iteration counts above
        ``max_hash_iterations``), unknown or expired records and store
        failures all mean "not signed in".

        Args:
            cookie_value: Raw cookie value, if the caller sent one

        Returns:
            The live record, or None

        Raises:
            MalformedTokenError: If the cookie does not have four fields
        """
        if not cookie_value:
            return None

        with logfire.span("remember_me_service.resolve_session"):
            token = decode_token(cookie_value)

            try:
                record_hash = token.record_hash(
                    max_iterations=self.auth_settings.max_hash_iterations
                )
            except InvalidInputError as e:
                logfire.warn("Unusable remember_me cookie", error=str(e))
                return None

            try:
                record = await self.store.get_remember_me(record_hash)
            except Exception as e:
                logfire.warn(
                    "remember_me lookup failed, treating caller as signed out",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return None

            if record is None or not record.is_live():
                logfire.info("No valid remember_me session for cookie")
                return None

            logfire.info(
                "Valid remember_me session", account_id=str(record.account_id)
            )
            return record

    def mint_session(
        self, account_id: AccountId, payload: SignedInPayload
    ) -> tuple[str, RememberMeRecord]:
        """Create a new session without storing it.

        Returns:
            Tuple of (cookie_value, record)
        """
        cookie_value, record_hash = create_session_token(
            self.auth_settings.hash_algorithm,
            self.auth_settings.hash_salt_length,
            self.auth_settings.hash_iterations,
        )
        record = RememberMeRecord(
            hash=record_hash,
            account_id=account_id,
            payload=payload,
            expires_at=datetime.now(timezone.utc)
            + timedelta(seconds=self.auth_settings.remember_me_ttl_seconds),
        )
        return cookie_value, record

    async def issue_session(
        self, account_id: AccountId, payload: SignedInPayload
    ) -> tuple[str, RememberMeRecord]:
        """Mint and persist a new remember-me session.

        Args:
            account_id: Account the session signs into
            payload: Signed-in message stored with the session

        Returns:
            Tuple of (cookie_value, stored record)
        """
        with logfire.span(
            "remember_me_service.issue_session", account_id=str(account_id)
        ):
            cookie_value, record = self.mint_session(account_id, payload)
            stored = await self.store.save_remember_me(
                account_id,
                record.hash,
                payload,
                self.auth_settings.remember_me_ttl_seconds,
            )
            logfire.info(
                "remember_me session issued",
                account_id=str(account_id),
                expires_at=stored.expires_at.isoformat(),
            )
            return cookie_value, stored
