"""Domain services."""

from .api_key_service import ApiKeyService
from .auth_service import AuthService, OAuthClient
from .base import Service
from .password_service import PasswordService
from .profile_extractor import (
    STRATEGY_EXTRACTORS,
    ProfileFieldExtractor,
    build_assertion,
)
from .remember_me_service import RememberMeService

__all__ = [
    "ApiKeyService",
    "AuthService",
    "OAuthClient",
    "PasswordService",
    "ProfileFieldExtractor",
    "RememberMeService",
    "STRATEGY_EXTRACTORS",
    "Service",
    "build_assertion",
]
