"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from fedauth.config import AuthSettings, Settings
from fedauth.util.di.base import ProviderBase
from fedauth.util.error import ConfigurationError


class ProdConfigProvider(ProviderBase):
    """Production config provider - concrete, no mocks needed.

    Settings are loaded from environment variables and .env file automatically.
    """

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide application settings from environment.

        Raises:
            ConfigurationError: If production runs with the default JWT secret
        """
        settings = Settings()
        if (
            settings.environment == "production"
            and settings.auth.jwt_secret == "CHANGE_ME_IN_PRODUCTION"
        ):
            raise ConfigurationError("AUTH__JWT_SECRET must be set in production")
        return settings

    @provide(scope=Scope.APP)
    def provide_auth_settings(self, settings: Settings) -> AuthSettings:
        """Provide auth settings."""
        return settings.auth
