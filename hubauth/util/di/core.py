"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from hubauth.config import AuthSettings, Settings
from hubauth.domain.error import InvalidInputError
from hubauth.util.di.base import ProviderBase
from hubauth.util.error import ConfigurationError
from hubauth.util.hashing import generate_hash


class ProdConfigProvider(ProviderBase):
    """Production config provider - concrete, no mocks needed.

    Settings are loaded from environment variables and .env file automatically.
    """

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide application settings from environment."""
        return Settings()

    @provide(scope=Scope.APP)
    def provide_auth_settings(self, settings: Settings) -> AuthSettings:
        """Provide auth settings.

        Raises:
            ConfigurationError: If the hashing policy cannot produce hashes
        """
        auth = settings.auth
        try:
            generate_hash(auth.hash_algorithm, "salt", 1, "")
        except InvalidInputError as e:
            raise ConfigurationError("auth.hash_algorithm", str(e))
        if auth.hash_salt_length < 1:
            raise ConfigurationError("auth.hash_salt_length", "must be at least 1")
        if auth.hash_iterations > auth.max_hash_iterations:
            # New sessions would never resolve
            raise ConfigurationError(
                "auth.hash_iterations",
                f"must not exceed {auth.max_hash_iterations} (auth.max_hash_iterations)",
            )
        return auth
