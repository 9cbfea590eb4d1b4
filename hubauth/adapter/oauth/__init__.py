"""OAuth adapters."""

from .client import DEFAULT_PROFILES, MockOAuthClient, create_mock_clients
from .error import OAuthError

__all__ = [
    "DEFAULT_PROFILES",
    "MockOAuthClient",
    "OAuthError",
    "create_mock_clients",
]
