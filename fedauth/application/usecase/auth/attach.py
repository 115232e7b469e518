"""Attach identity use case."""

from urllib.parse import unquote

import logfire
from pydantic import BaseModel

from fedauth.application.usecase.base import BaseUseCase
from fedauth.domain.model import User
from fedauth.domain.service import IdentityResolver
from fedauth.domain.value import ExternalProfile


class AttachRequest(BaseModel):
    """Attach request from a completed provider handshake."""

    profile: ExternalProfile
    redirect_target: str
    current_user: User  # Already authenticated; checked by the caller


class AttachResponse(BaseModel):
    """Attach response."""

    link_id: str
    user_id: str
    provider: str
    redirect_url: str


class AttachUseCase(BaseUseCase):
    """Link an external identity to the logged-in user.

    Failures propagate without touching the session: the user stays
    logged in as before.
    """

    def __init__(self, identity_resolver: IdentityResolver) -> None:
        """Initialize attach use case.

        Args:
            identity_resolver: Identity resolution domain service
        """
        self.identity_resolver = identity_resolver

    async def execute(self, request: AttachRequest) -> AttachResponse:
        with logfire.span(
            "attach_identity",
            provider=request.profile.provider,
            user_id=str(request.current_user.id),
        ):
            link = await self.identity_resolver.resolve_attach(
                request.profile, request.current_user
            )

            return AttachResponse(
                link_id=str(link.id),
                user_id=str(link.user_id),
                provider=link.provider,
                redirect_url=unquote(request.redirect_target),
            )
