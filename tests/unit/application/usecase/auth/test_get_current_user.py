"""Unit tests for GetCurrentUserUseCase."""

from uuid import uuid4

import pytest

from fedauth.application.usecase.auth.get_current_user import (
    GetCurrentUserRequest,
    GetCurrentUserUseCase,
)
from fedauth.config import AuthSettings
from fedauth.domain.error import NotAuthenticatedError
from fedauth.domain.model import IdentityLink
from fedauth.domain.service import JWTService
from fedauth.domain.value import IdentityLinkId
from fedauth.persistence.repository.inmemory import (
    InMemoryIdentityLinkRepository,
    InMemoryUserRepository,
)
from tests.harness import make_user


@pytest.fixture
def jwt_service() -> JWTService:
    return JWTService(auth_settings=AuthSettings(jwt_secret="test-secret"))


class TestGetCurrentUserUseCase:
    """Tests for GetCurrentUserUseCase."""

    @pytest.mark.asyncio
    async def test_returns_user_with_identities(self, jwt_service):
        # Arrange
        users = InMemoryUserRepository()
        links = InMemoryIdentityLinkRepository()
        user = await users.save(make_user())
        await links.save(
            IdentityLink(
                id=IdentityLinkId(uuid4()),
                user_id=user.id,
                provider="github",
                external_id="gh-42",
                display_name="alice-gh",
                avatar_url="https://example.com/a.png",
            )
        )
        token = jwt_service.create_token(str(user.id), user.login, "hybridauth")
        use_case = GetCurrentUserUseCase(jwt_service, users, links)

        # Act
        response = await use_case.execute(GetCurrentUserRequest(token=token))

        # Assert
        assert response.user_id == str(user.id)
        assert response.login == "alice"
        assert [i.provider for i in response.identities] == ["github"]
        assert response.identities[0].display_name == "alice-gh"

    @pytest.mark.asyncio
    async def test_invalid_token_is_not_authenticated(self, jwt_service):
        use_case = GetCurrentUserUseCase(
            jwt_service, InMemoryUserRepository(), InMemoryIdentityLinkRepository()
        )

        with pytest.raises(NotAuthenticatedError):
            await use_case.get_user("not-a-jwt")

    @pytest.mark.asyncio
    async def test_token_signed_with_other_secret_is_rejected(self, jwt_service):
        # Arrange
        users = InMemoryUserRepository()
        user = await users.save(make_user())
        other = JWTService(auth_settings=AuthSettings(jwt_secret="other-secret"))
        token = other.create_token(str(user.id), user.login, "hybridauth")
        use_case = GetCurrentUserUseCase(
            jwt_service, users, InMemoryIdentityLinkRepository()
        )

        # Act / Assert
        with pytest.raises(NotAuthenticatedError):
            await use_case.get_user(token)

    @pytest.mark.asyncio
    async def test_deleted_user_is_not_authenticated(self, jwt_service):
        use_case = GetCurrentUserUseCase(
            jwt_service, InMemoryUserRepository(), InMemoryIdentityLinkRepository()
        )
        token = jwt_service.create_token(str(uuid4()), "ghost", "hybridauth")

        with pytest.raises(NotAuthenticatedError):
            await use_case.get_user(token)
