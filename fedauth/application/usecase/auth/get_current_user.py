"""Get current user use case."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from fedauth.domain.error import NotAuthenticatedError
from fedauth.domain.model import User
from fedauth.domain.repository import IdentityLinkRepository, UserRepository
from fedauth.domain.service import JWTService
from fedauth.domain.value import UserId
from fedauth.util.jwt import JWTError


class GetCurrentUserRequest(BaseModel):
    """Get current user request."""

    token: str  # JWT token


class IdentityLinkInfo(BaseModel):
    """Identity link information for response."""

    provider: str
    display_name: str
    avatar_url: str | None
    profile_url: str | None


class GetCurrentUserResponse(BaseModel):
    """Get current user response."""

    user_id: str
    login: str
    display_name: str
    email: str | None
    created_at: datetime
    identities: list[IdentityLinkInfo]


class GetCurrentUserUseCase:
    """Use case for getting current authenticated user."""

    def __init__(
        self,
        jwt_service: JWTService,
        user_repository: UserRepository,
        identity_link_repository: IdentityLinkRepository,
    ) -> None:
        self.jwt_service = jwt_service
        self.user_repository = user_repository
        self.identity_link_repository = identity_link_repository

    async def get_user(self, token: str) -> User:
        """Load the user a session token belongs to.

        Raises:
            NotAuthenticatedError: If the token is invalid or its user is gone
        """
        try:
            payload = self.jwt_service.verify_token(token)
        except JWTError as e:
            raise NotAuthenticatedError(str(e)) from e

        user = await self.user_repository.find_by_id(UserId(UUID(payload.user_id)))
        if not user:
            raise NotAuthenticatedError("Session user no longer exists")
        return user

    async def execute(self, request: GetCurrentUserRequest) -> GetCurrentUserResponse:
        user = await self.get_user(request.token)
        links = await self.identity_link_repository.find_all_by_user_id(user.id)

        return GetCurrentUserResponse(
            user_id=str(user.id),
            login=user.login,
            display_name=user.display_name,
            email=user.email,
            created_at=user.created_at,
            identities=[
                IdentityLinkInfo(
                    provider=link.provider,
                    display_name=link.display_name,
                    avatar_url=link.avatar_url,
                    profile_url=link.profile_url,
                )
                for link in links
            ],
        )
