"""In-memory repository implementations for testing."""

from .account_link import InMemoryAccountLinkStore

__all__ = [
    "InMemoryAccountLinkStore",
]
