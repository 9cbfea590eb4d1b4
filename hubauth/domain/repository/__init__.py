"""Repository interfaces."""

from hubauth.domain.repository.account_link import AccountLinkStore

__all__ = ["AccountLinkStore"]
