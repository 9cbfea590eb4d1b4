"""Remember-me session records."""

from datetime import datetime, timezone

from hubauth.domain.model.common import DomainModel
from hubauth.domain.value import AccountId


class SignedInPayload(DomainModel):
    """What a remember-me session signs the client in as."""

    remember_me: bool = True
    hub: str
    account_id: AccountId
    first_name: str = ""
    last_name: str = ""


class RememberMeRecord(DomainModel):
    """Stored server-side half of a remember-me cookie.

    Keyed by the hash of the cookie's session secret. Records are never
    deleted on expiry, they simply stop authenticating.
    """

    hash: str
    account_id: AccountId
    payload: SignedInPayload
    expires_at: datetime

    def is_live(self, now: datetime | None = None) -> bool:
        """Whether the record may still authenticate."""
        now = now or datetime.now(timezone.utc)
        return self.expires_at > now
