"""Domain value objects for hubauth.

Value objects are immutable and defined by their values, not identity.
They encapsulate validation rules and normalization.
"""

from enum import Enum
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from hubauth.domain.value.common import ValueObject


class AuthStrategy(str, Enum):
    """Supported third-party sign-in strategies."""

    FACEBOOK = "facebook"
    GITHUB = "github"
    GOOGLE = "google"
    TWITTER = "twitter"


def normalize_email(value: Any) -> str | None:
    """Return the lowercased address, or None if it is not a valid email."""
    if not isinstance(value, str):
        return None
    try:
        _, email = validate_email(value.strip())
    except PydanticCustomError:
        return None
    return email.lower()


def split_full_name(full_name: str) -> tuple[str, str]:
    """Split a full name on its last space into (first_name, last_name).

    "Ada King Lovelace" -> ("Ada King", "Lovelace"); "Plato " -> ("", "Plato").
    """
    full_name = full_name.strip()
    i = full_name.rfind(" ")
    if i == -1:
        return "", full_name
    return full_name[:i].strip(), full_name[i:].strip()


class ExternalAssertion(ValueObject):
    """An already-validated login assertion from a third-party provider.

    Built once per callback and never modified. The emails are lowercased and
    only syntactically valid addresses are kept. When only a full name is
    supplied it is split into first and last name.
    """

    strategy: AuthStrategy
    external_id: str
    emails: list[str] = Field(default_factory=list)
    first_name: str = ""
    last_name: str = ""
    full_name: str | None = None
    profile: dict[str, Any] = Field(default_factory=dict)

    @field_validator("external_id", mode="before")
    @classmethod
    def stringify_external_id(cls, v: Any) -> str:
        """Provider ids are often numeric; the link key is always a string."""
        if v is None:
            raise ValueError("external_id is required")
        return str(v)

    @field_validator("emails", mode="before")
    @classmethod
    def normalize_emails(cls, v: Any) -> list[str]:
        """Drop invalid entries and lowercase the rest, keeping order."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        normalized = [normalize_email(x) for x in v]
        return [x for x in normalized if x is not None]

    @model_validator(mode="before")
    @classmethod
    def derive_names(cls, data: Any) -> Any:
        """Fill first/last name from full_name when neither is given."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        full_name = data.get("full_name")
        if (
            full_name is not None
            and data.get("first_name") is None
            and data.get("last_name") is None
        ):
            data["first_name"], data["last_name"] = split_full_name(full_name)
        if data.get("first_name") is None:
            data["first_name"] = ""
        if data.get("last_name") is None:
            data["last_name"] = ""
        return data

    @property
    def primary_email(self) -> str | None:
        """First asserted email, if any."""
        return self.emails[0] if self.emails else None


class SessionContext(ValueObject):
    """Credentials the caller presented with the callback request.

    Both values come straight from cookies and are opaque here.
    """

    remember_me_token: str | None = None
    api_key_request_token: str | None = None


class ServerSettings(ValueObject):
    """Server-wide settings read from the store."""

    help_email: str | None = None
