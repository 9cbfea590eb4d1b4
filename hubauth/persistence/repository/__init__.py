"""SQL repository implementations."""

from hubauth.persistence.repository.account_link import SqlAccountLinkStore

__all__ = [
    "SqlAccountLinkStore",
]
