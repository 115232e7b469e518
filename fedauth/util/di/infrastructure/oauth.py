"""OAuth infrastructure providers."""

from dishka import Scope, provide
import logfire

from fedauth.adapter.oauth import GenericOAuthClient
from fedauth.config import Settings
from fedauth.domain.service import OAuthClient
from fedauth.util.di.base import ProviderBase


class OAuthProvider(ProviderBase):
    """OAuth component base."""

    __mock_component__ = "oauth"


class ProdOAuthProvider(OAuthProvider):
    """Production OAuth provider: one client per configured provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_oauth_clients(self, settings: Settings) -> dict[str, OAuthClient]:
        """Provide dictionary of all OAuth clients by provider key.

        Provider settings are passed through untouched; the callback URL
        is computed from the API base URL.
        """
        clients: dict[str, OAuthClient] = {
            name: GenericOAuthClient(
                provider=name,
                settings=provider_settings,
                redirect_uri=settings.auth.callback_url_for(name),
            )
            for name, provider_settings in settings.auth.providers.items()
        }
        logfire.info("OAuth clients configured", providers=sorted(clients))
        return clients
