"""Mockable infrastructure components: OAuth clients and persistence."""

# Production implementations must be imported to show up in __subclasses__()
from .oauth import OAuthProvider, ProdOAuthProvider
from .persistence import PersistenceProvider, ProdPersistenceProvider

__all__ = [
    "OAuthProvider",
    "PersistenceProvider",
    "ProdOAuthProvider",
    "ProdPersistenceProvider",
]
