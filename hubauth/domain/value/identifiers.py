"""Strongly typed identifiers for hubauth domain entities."""

from typing import NewType
from uuid import UUID

AccountId = NewType("AccountId", UUID)
