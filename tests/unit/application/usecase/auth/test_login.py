"""Unit tests for LoginUseCase."""

from uuid import UUID, uuid4

from dishka import AsyncContainer
import pytest

from fedauth.application.usecase.auth.login import LoginRequest, LoginUseCase
from fedauth.config import AuthSettings
from fedauth.domain.error import AutoRegisterDisabledError, MissingDefaultGroupError
from fedauth.domain.model import Group, User
from fedauth.domain.repository import UserRepository
from fedauth.domain.service import AUTH_CONTEXT, IdentityResolver, SessionAuthority
from fedauth.domain.value import ExternalProfile, GroupId
from fedauth.persistence.repository.inmemory import (
    InMemoryIdentityLinkRepository,
    InMemoryUnitOfWork,
    InMemoryUserRepository,
)
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


class RecordingSession(SessionAuthority):
    """Session authority that records calls."""

    def __init__(self) -> None:
        self.authorized: list[tuple[User, dict[str, str]]] = []
        self.logouts = 0

    async def set_authorized(self, user: User, context: dict[str, str]) -> None:
        self.authorized.append((user, context))

    async def logout(self) -> None:
        self.logouts += 1


def build_use_case(
    allow_auto_register: bool = True, with_default_group: bool = True
) -> tuple[LoginUseCase, RecordingSession]:
    groups = [Group(id=GroupId(uuid4()), name="Users")] if with_default_group else []
    resolver = IdentityResolver(
        identity_link_repository=InMemoryIdentityLinkRepository(),
        user_repository=InMemoryUserRepository(groups=groups),
        unit_of_work=InMemoryUnitOfWork(),
        auth_settings=AuthSettings(allow_auto_register=allow_auto_register),
    )
    session = RecordingSession()
    return LoginUseCase(identity_resolver=resolver, session_authority=session), session


class TestLoginUseCase:
    """Tests for LoginUseCase."""

    @pytest.mark.asyncio
    async def test_login_authorizes_session(self, github_profile):
        """Successful login marks the session as authenticated."""
        # Arrange
        use_case, session = build_use_case()

        # Act
        response = await use_case.execute(
            LoginRequest(profile=github_profile, redirect_target="/home")
        )

        # Assert
        assert len(session.authorized) == 1
        user, context = session.authorized[0]
        assert str(user.id) == response.user_id
        assert context == AUTH_CONTEXT
        assert context == {"authenticate": "hybridauth"}
        assert session.logouts == 0

    @pytest.mark.asyncio
    async def test_redirect_target_is_url_decoded(self, github_profile):
        use_case, _ = build_use_case()

        response = await use_case.execute(
            LoginRequest(
                profile=github_profile,
                redirect_target="https%3A%2F%2Fapp.example.com%2Fhome%3Ftab%3D1",
            )
        )

        assert response.redirect_url == "https://app.example.com/home?tab=1"

    @pytest.mark.asyncio
    async def test_rejected_login_logs_out_and_reraises(self, github_profile):
        """Failure clears the session before the error propagates."""
        # Arrange
        use_case, session = build_use_case(allow_auto_register=False)

        # Act / Assert
        with pytest.raises(AutoRegisterDisabledError):
            await use_case.execute(
                LoginRequest(profile=github_profile, redirect_target="/home")
            )

        assert session.logouts == 1
        assert session.authorized == []

    @pytest.mark.asyncio
    async def test_missing_default_group_logs_out(self, github_profile):
        use_case, session = build_use_case(with_default_group=False)

        with pytest.raises(MissingDefaultGroupError):
            await use_case.execute(
                LoginRequest(profile=github_profile, redirect_target="/home")
            )

        assert session.logouts == 1

    @pytest.mark.asyncio
    async def test_login_from_container_registers_user(
        self, unit_env: AsyncContainer
    ):
        """Login wired through DI registers into the default group."""
        # Arrange
        use_case = await unit_env.get(LoginUseCase)
        user_repo = await unit_env.get(UserRepository)
        profile = ExternalProfile(
            provider="google", external_id="g-1", email_verified="v@x.com"
        )

        # Act
        response = await use_case.execute(
            LoginRequest(profile=profile, redirect_target="/")
        )

        # Assert
        user = await user_repo.find_by_id(UUID(response.user_id))
        group = await user_repo.find_group_by_name("Users")
        assert user is not None
        assert user.group_ids == [group.id]
