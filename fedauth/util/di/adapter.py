"""Adapter DI providers."""

from dishka import Scope, alias, provide

from fedauth.adapter.session import CookieSessionAuthority
from fedauth.config import Settings
from fedauth.domain.service import JWTService, SessionAuthority
from fedauth.util.di.base import ProviderBase


class ProdAdapterProvider(ProviderBase):
    """Session adapter provider - concrete, shared by production and tests."""

    @provide(scope=Scope.REQUEST)
    def get_cookie_session_authority(
        self, jwt_service: JWTService, settings: Settings
    ) -> CookieSessionAuthority:
        """Provide the request's session authority."""
        return CookieSessionAuthority(
            jwt_service=jwt_service,
            auth_settings=settings.auth,
            secure=settings.api.protocol == "https",
        )

    # Use cases see the interface, routes apply the cookie
    session_authority = alias(source=CookieSessionAuthority, provides=SessionAuthority)
