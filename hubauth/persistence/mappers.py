"""Mappers for converting between database rows and domain models.

Since we're using Pydantic domain models (immutable), we use manual mapping
instead of SQLAlchemy's classical imperative mapping.
"""

from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID

from hubauth.domain.model import (
    Account,
    ExternalIdentityLink,
    RememberMeRecord,
    SignedInPayload,
)
from hubauth.domain.value import AccountId


def _uuid(value: Any) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def _utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def account_to_dict(account: Account) -> Dict[str, Any]:
    """Convert Account domain model to database dict."""
    return account.model_dump()


def link_to_dict(link: ExternalIdentityLink) -> Dict[str, Any]:
    """Convert ExternalIdentityLink domain model to database dict."""
    data = link.model_dump()
    data["strategy"] = link.strategy.value
    return data


def row_to_remember_me(row: Dict[str, Any]) -> RememberMeRecord:
    """Convert database row to RememberMeRecord domain model.

    Args:
        row: Database row as dict

    Returns:
        RememberMeRecord domain model
    """
    return RememberMeRecord(
        hash=row["hash"],
        account_id=AccountId(_uuid(row["account_id"])),
        payload=SignedInPayload.model_validate(row["payload"]),
        expires_at=_utc(row["expires_at"]),
    )


def remember_me_to_dict(record: RememberMeRecord) -> Dict[str, Any]:
    """Convert RememberMeRecord domain model to database dict.

    The payload goes into a JSON column, so it is dumped in JSON mode.
    """
    return {
        "hash": record.hash,
        "account_id": record.account_id,
        "payload": record.payload.model_dump(mode="json"),
        "expires_at": record.expires_at,
    }
