"""Login use case."""

from urllib.parse import unquote

import logfire
from pydantic import BaseModel

from fedauth.application.usecase.base import BaseUseCase
from fedauth.domain.service import AUTH_CONTEXT, IdentityResolver, SessionAuthority
from fedauth.domain.value import ExternalProfile


class LoginRequest(BaseModel):
    """Login request from a completed provider handshake."""

    profile: ExternalProfile
    redirect_target: str  # URL-encoded target carried through the handshake


class LoginResponse(BaseModel):
    """Login response."""

    user_id: str
    login: str
    redirect_url: str


class LoginUseCase(BaseUseCase):
    """Log in (or register) the user behind an external profile."""

    def __init__(
        self,
        identity_resolver: IdentityResolver,
        session_authority: SessionAuthority,
    ) -> None:
        """Initialize login use case.

        Args:
            identity_resolver: Identity resolution domain service
            session_authority: Session of the current request
        """
        self.identity_resolver = identity_resolver
        self.session_authority = session_authority

    async def execute(self, request: LoginRequest) -> LoginResponse:
        """Execute login.

        Steps:
        1. Resolve the profile to a local user (registering if allowed)
        2. Mark the session as authenticated

        Any failure logs the session out before the error propagates, so a
        failed login never leaves a half-authenticated session behind.

        Args:
            request: Login request with the external profile

        Returns:
            Login response with the decoded redirect URL

        Raises:
            IdentityError: If the identity cannot be resolved
        """
        profile = request.profile

        with logfire.span("login_user", provider=profile.provider):
            try:
                user = await self.identity_resolver.resolve_login(profile)
                await self.session_authority.set_authorized(user, AUTH_CONTEXT)
            except Exception as e:
                logfire.warn(
                    "Login failed - session cleared",
                    provider=profile.provider,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self.session_authority.logout()
                raise

            logfire.info("User logged in", user_id=str(user.id), provider=profile.provider)

            return LoginResponse(
                user_id=str(user.id),
                login=user.login,
                redirect_url=unquote(request.redirect_target),
            )
