"""Domain model entities for hubauth."""

from hubauth.domain.model.account import Account
from hubauth.domain.model.external_identity import ExternalIdentityLink
from hubauth.domain.model.outcome import (
    Created,
    Linked,
    OutcomeKind,
    ReconciliationOutcome,
    Rejected,
    SignedIn,
)
from hubauth.domain.model.remember_me import RememberMeRecord, SignedInPayload

__all__ = [
    "Account",
    "ExternalIdentityLink",
    "RememberMeRecord",
    "SignedInPayload",
    # Outcomes
    "OutcomeKind",
    "ReconciliationOutcome",
    "Rejected",
    "SignedIn",
    "Linked",
    "Created",
]
