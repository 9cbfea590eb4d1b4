"""Base for value objects."""

from pydantic import BaseModel, ConfigDict


class ValueObject(BaseModel):
    """Frozen, compared field by field.

    Normalization (lowercased emails, stringified provider ids) happens in
    validators, so an instance is always in canonical form.
    """

    model_config = ConfigDict(frozen=True)
