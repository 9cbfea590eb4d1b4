"""Reconciliation outcomes.

Every login attempt ends in exactly one of these variants.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from hubauth.domain.error import ReconciliationError
from hubauth.domain.model.common import DomainModel
from hubauth.domain.value import AccountId


class OutcomeKind(str, Enum):
    """Discriminator for reconciliation outcomes."""

    REJECTED = "rejected"
    SIGNED_IN = "signed_in"
    LINKED = "linked"
    CREATED = "created"


class Rejected(DomainModel):
    """The attempt was refused; no session is issued."""

    kind: Literal[OutcomeKind.REJECTED] = OutcomeKind.REJECTED
    error: ReconciliationError
    # Set when the account was already resolved (e.g. banned accounts)
    account_id: Optional[AccountId] = None

    @property
    def reason(self) -> str:
        """User-facing explanation."""
        return str(self.error)

    @property
    def code(self) -> str:
        """Short machine-readable error code."""
        return self.error.code


class SignedIn(DomainModel):
    """Existing identity link; the caller is signed into its account."""

    kind: Literal[OutcomeKind.SIGNED_IN] = OutcomeKind.SIGNED_IN
    account_id: AccountId


class Linked(DomainModel):
    """New identity attached to the account of the current remember-me session."""

    kind: Literal[OutcomeKind.LINKED] = OutcomeKind.LINKED
    account_id: AccountId


class Created(DomainModel):
    """Brand-new account provisioned for the identity."""

    kind: Literal[OutcomeKind.CREATED] = OutcomeKind.CREATED
    account_id: AccountId
    email_address: Optional[str] = None


ReconciliationOutcome = Annotated[
    Union[Rejected, SignedIn, Linked, Created], Field(discriminator="kind")
]
