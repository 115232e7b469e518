"""Application layer DI providers."""

from dishka import Scope, provide

from fedauth.application.usecase.auth import (
    AttachUseCase,
    GetCurrentUserUseCase,
    LoginUseCase,
)
from fedauth.domain.repository import IdentityLinkRepository, UserRepository
from fedauth.domain.service import IdentityResolver, JWTService, SessionAuthority
from fedauth.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    @provide(scope=Scope.REQUEST)
    def get_login_use_case(
        self,
        identity_resolver: IdentityResolver,
        session_authority: SessionAuthority,
    ) -> LoginUseCase:
        """Provide login use case."""
        return LoginUseCase(
            identity_resolver=identity_resolver,
            session_authority=session_authority,
        )

    @provide(scope=Scope.REQUEST)
    def get_attach_use_case(self, identity_resolver: IdentityResolver) -> AttachUseCase:
        """Provide attach use case."""
        return AttachUseCase(identity_resolver=identity_resolver)

    @provide(scope=Scope.REQUEST)
    def get_current_user_use_case(
        self,
        jwt_service: JWTService,
        user_repository: UserRepository,
        identity_link_repository: IdentityLinkRepository,
    ) -> GetCurrentUserUseCase:
        """Provide get current user use case."""
        return GetCurrentUserUseCase(
            jwt_service=jwt_service,
            user_repository=user_repository,
            identity_link_repository=identity_link_repository,
        )
