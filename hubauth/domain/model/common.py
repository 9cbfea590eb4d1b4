"""Shared base for hubauth entities."""

from pydantic import BaseModel, ConfigDict


class DomainModel(BaseModel):
    """Immutable entity base.

    Entities are never edited in place; a change is a ``model_copy(update=...)``
    that the store persists. Arbitrary types are allowed so a rejected outcome
    can carry the exception that ended the login.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
