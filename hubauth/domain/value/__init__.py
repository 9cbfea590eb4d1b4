"""Domain value objects for hubauth."""

from hubauth.domain.value.identifiers import AccountId
from hubauth.domain.value.types import (
    AuthStrategy,
    ExternalAssertion,
    ServerSettings,
    SessionContext,
    normalize_email,
    split_full_name,
)

__all__ = [
    # Identifiers
    "AccountId",
    # Types
    "AuthStrategy",
    "ExternalAssertion",
    "ServerSettings",
    "SessionContext",
    # Helpers
    "normalize_email",
    "split_full_name",
]
