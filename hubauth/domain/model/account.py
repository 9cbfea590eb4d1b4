"""Account aggregate root.

An account is the durable internal identity. It can be reached through any
number of external identity links and, optionally, a password.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from hubauth.domain.model.common import DomainModel
from hubauth.domain.value import AccountId


class Account(DomainModel):
    """Internal user account."""

    id: AccountId
    first_name: str = ""
    last_name: str = ""
    email_address: Optional[str] = None
    password_hash: Optional[str] = None
    api_key: Optional[str] = None
    banned: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
