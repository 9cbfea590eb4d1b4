"""External identity link entity.

Binds a (strategy, external_id) pair to exactly one account, forever.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import Field

from hubauth.domain.model.common import DomainModel
from hubauth.domain.value import AccountId, AuthStrategy


class ExternalIdentityLink(DomainModel):
    """Immutable binding between a provider identity and an account.

    Created at most once per (strategy, external_id) and never updated.
    The profile is stored as received from the provider.
    """

    strategy: AuthStrategy
    external_id: str
    account_id: AccountId
    profile: dict[str, Any] = Field(default_factory=dict)
    email_address: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
