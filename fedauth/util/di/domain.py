"""Domain layer DI providers."""

from datetime import timedelta

from dishka import Scope, provide

from fedauth.config import AuthSettings
from fedauth.domain.repository import (
    IdentityLinkRepository,
    UnitOfWork,
    UserRepository,
)
from fedauth.domain.service import (
    AuthorizationStateStore,
    AuthService,
    IdentityResolver,
    JWTService,
    OAuthClient,
)
from fedauth.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    Each HTTP request gets fresh service instances with their own transaction.
    """

    scope = Scope.REQUEST

    @provide(scope=Scope.APP)
    def get_state_store(self, auth_settings: AuthSettings) -> AuthorizationStateStore:
        """Provide the process-wide pending authorization store."""
        return AuthorizationStateStore(
            ttl=timedelta(minutes=auth_settings.state_ttl_minutes)
        )

    @provide
    def get_auth_service(
        self,
        oauth_clients: dict[str, OAuthClient],
        state_store: AuthorizationStateStore,
    ) -> AuthService:
        """Provide provider handshake domain service.

        Args:
            oauth_clients: Dictionary mapping provider keys to their OAuth clients
            state_store: Pending authorization store

        Returns:
            AuthService configured with all available OAuth clients
        """
        return AuthService(oauth_clients=oauth_clients, state_store=state_store)

    @provide
    def get_jwt_service(self, auth_settings: AuthSettings) -> JWTService:
        """Provide JWT token domain service."""
        return JWTService(auth_settings=auth_settings)

    @provide
    def get_identity_resolver(
        self,
        identity_link_repository: IdentityLinkRepository,
        user_repository: UserRepository,
        unit_of_work: UnitOfWork,
        auth_settings: AuthSettings,
    ) -> IdentityResolver:
        """Provide identity resolution domain service."""
        return IdentityResolver(
            identity_link_repository=identity_link_repository,
            user_repository=user_repository,
            unit_of_work=unit_of_work,
            auth_settings=auth_settings,
        )
