"""Unit tests for IdentityResolver."""

import asyncio
from uuid import uuid4

import pytest

from fedauth.config import AuthSettings
from fedauth.domain.error import (
    AutoRegisterDisabledError,
    InvalidExternalProfileError,
    MissingDefaultGroupError,
    NotFoundError,
)
from fedauth.domain.model import UNUSABLE_PASSWORD_HASH, Group, IdentityLink
from fedauth.domain.service import IdentityResolver
from fedauth.domain.value import ExternalProfile, GroupId, IdentityLinkId, UserId
from fedauth.persistence.repository.inmemory import (
    InMemoryIdentityLinkRepository,
    InMemoryUnitOfWork,
    InMemoryUserRepository,
)
from tests.harness import make_user


def build_resolver(
    allow_auto_register: bool = True,
    with_default_group: bool = True,
    link_repo: InMemoryIdentityLinkRepository | None = None,
) -> tuple[IdentityResolver, InMemoryUserRepository, InMemoryIdentityLinkRepository]:
    groups = [Group(id=GroupId(uuid4()), name="Users")] if with_default_group else []
    user_repo = InMemoryUserRepository(groups=groups)
    link_repo = link_repo or InMemoryIdentityLinkRepository()
    resolver = IdentityResolver(
        identity_link_repository=link_repo,
        user_repository=user_repo,
        unit_of_work=InMemoryUnitOfWork(),
        auth_settings=AuthSettings(allow_auto_register=allow_auto_register),
    )
    return resolver, user_repo, link_repo


class SlowLookupLinkRepository(InMemoryIdentityLinkRepository):
    """Yields to the event loop after every lookup.

    Lets two concurrent logins both observe "no link" before either
    of them writes, like two requests racing against a database.
    """

    async def find_by_provider(self, provider: str, external_id: str):
        link = await super().find_by_provider(provider, external_id)
        await asyncio.sleep(0)
        return link


class TestResolveLogin:
    """Tests for IdentityResolver.resolve_login()."""

    @pytest.mark.asyncio
    async def test_unknown_identity_with_auto_register_disabled_is_rejected(
        self, github_profile
    ):
        """Should raise and create nothing when auto-register is off."""
        # Arrange
        resolver, user_repo, link_repo = build_resolver(allow_auto_register=False)

        # Act / Assert
        with pytest.raises(AutoRegisterDisabledError) as exc_info:
            await resolver.resolve_login(github_profile)

        assert exc_info.value.kind.value == "auto_register_disabled"
        assert user_repo.count() == 0
        assert link_repo.count() == 0

    @pytest.mark.asyncio
    async def test_unknown_identity_registers_user_and_link(self, github_profile):
        """Should create exactly one user and one identity link."""
        # Arrange
        resolver, user_repo, link_repo = build_resolver()
        default_group = await user_repo.find_group_by_name("Users")

        # Act
        user = await resolver.resolve_login(github_profile)

        # Assert
        assert user_repo.count() == 1
        assert link_repo.count() == 1

        assert user.login.startswith("user")
        assert user.display_name == "Alice Example"
        assert user.email == "alice@example.com"
        assert user.password_hash == UNUSABLE_PASSWORD_HASH
        assert user.group_ids == [default_group.id]

        link = await link_repo.find_by_provider("github", "gh-42")
        assert link is not None
        assert link.user_id == user.id
        assert link.display_name == "Alice Example"
        assert link.avatar_url == "https://example.com/alice.png"
        assert link.profile_url == "https://github.com/alice"

    @pytest.mark.asyncio
    async def test_second_login_returns_same_user_without_writes(self, github_profile):
        """Should resolve an existing link to its user and create nothing."""
        # Arrange
        resolver, user_repo, link_repo = build_resolver()
        first = await resolver.resolve_login(github_profile)

        # Act
        second = await resolver.resolve_login(github_profile)

        # Assert
        assert second.id == first.id
        assert user_repo.count() == 1
        assert link_repo.count() == 1

    @pytest.mark.asyncio
    async def test_existing_link_is_not_refreshed_on_login(self, github_profile):
        """Login leaves the cached link data untouched."""
        # Arrange
        resolver, _, link_repo = build_resolver()
        await resolver.resolve_login(github_profile)
        renamed = github_profile.model_copy(update={"display_name": "Alice Renamed"})

        # Act
        await resolver.resolve_login(renamed)

        # Assert
        link = await link_repo.find_by_provider("github", "gh-42")
        assert link.display_name == "Alice Example"

    @pytest.mark.asyncio
    async def test_existing_link_resolves_even_with_auto_register_disabled(
        self, github_profile
    ):
        """Auto-register only matters for unknown identities."""
        # Arrange
        resolver, user_repo, link_repo = build_resolver(allow_auto_register=False)
        user = await user_repo.save(make_user())
        await link_repo.save(
            IdentityLink(
                id=IdentityLinkId(uuid4()),
                user_id=user.id,
                provider="github",
                external_id="gh-42",
                display_name="Alice Example",
            )
        )

        # Act
        resolved = await resolver.resolve_login(github_profile)

        # Assert
        assert resolved.id == user.id

    @pytest.mark.asyncio
    async def test_link_display_name_falls_back_to_verified_email(self):
        """Nameless profile should cache the verified email on the link."""
        # Arrange
        resolver, _, link_repo = build_resolver()
        profile = ExternalProfile(
            provider="github",
            external_id="id1",
            display_name=None,
            email="e@x.com",
            email_verified="v@x.com",
        )

        # Act
        user = await resolver.resolve_login(profile)

        # Assert
        link = await link_repo.find_by_provider("github", "id1")
        assert link.display_name == "v@x.com"
        # The user gets a generated placeholder name, not an email
        assert user.display_name.startswith("github")
        assert user.display_name != "v@x.com"

    @pytest.mark.asyncio
    async def test_missing_default_group_persists_nothing(self, github_profile):
        """Should raise MissingDefaultGroupError and leave no user behind."""
        # Arrange
        resolver, user_repo, link_repo = build_resolver(with_default_group=False)

        # Act / Assert
        with pytest.raises(MissingDefaultGroupError) as exc_info:
            await resolver.resolve_login(github_profile)

        assert exc_info.value.group_name == "Users"
        assert user_repo.count() == 0
        assert link_repo.count() == 0

    @pytest.mark.asyncio
    async def test_invalid_profile_is_rejected_before_persistence(self):
        """Blank external_id never reaches the repositories."""
        # Arrange
        resolver, user_repo, link_repo = build_resolver()
        profile = ExternalProfile(provider="github", external_id="  ")

        # Act / Assert
        with pytest.raises(InvalidExternalProfileError):
            await resolver.resolve_login(profile)

        assert user_repo.count() == 0
        assert link_repo.count() == 0

    @pytest.mark.asyncio
    async def test_link_to_missing_user_raises_not_found(self, github_profile):
        """A dangling link is reported, not silently re-registered."""
        # Arrange
        resolver, user_repo, link_repo = build_resolver()
        await link_repo.save(
            IdentityLink(
                id=IdentityLinkId(uuid4()),
                user_id=UserId(uuid4()),
                provider="github",
                external_id="gh-42",
                display_name="ghost",
            )
        )

        # Act / Assert
        with pytest.raises(NotFoundError):
            await resolver.resolve_login(github_profile)

        assert user_repo.count() == 0

    @pytest.mark.asyncio
    async def test_concurrent_registration_creates_one_user(self, github_profile):
        """The losing request resolves to the winner's user."""
        # Arrange
        resolver, user_repo, link_repo = build_resolver(
            link_repo=SlowLookupLinkRepository()
        )

        # Act
        first, second = await asyncio.gather(
            resolver.resolve_login(github_profile),
            resolver.resolve_login(github_profile),
        )

        # Assert
        assert first.id == second.id
        assert user_repo.count() == 1
        assert link_repo.count() == 1


class TestResolveAttach:
    """Tests for IdentityResolver.resolve_attach()."""

    @pytest.mark.asyncio
    async def test_attach_creates_link_for_current_user(self, github_profile):
        """Should link a new identity to the logged-in user."""
        # Arrange
        resolver, user_repo, link_repo = build_resolver()
        user = await user_repo.save(make_user())

        # Act
        link = await resolver.resolve_attach(github_profile, user)

        # Assert
        assert link.user_id == user.id
        assert link.provider == "github"
        assert link.external_id == "gh-42"
        assert link.display_name == "Alice Example"
        assert link.avatar_url == "https://example.com/alice.png"
        assert link_repo.count() == 1
        # Attach never registers users
        assert user_repo.count() == 1

    @pytest.mark.asyncio
    async def test_attach_works_with_auto_register_disabled(self, github_profile):
        """Auto-register has no say over attach."""
        # Arrange
        resolver, user_repo, _ = build_resolver(allow_auto_register=False)
        user = await user_repo.save(make_user())

        # Act
        link = await resolver.resolve_attach(github_profile, user)

        # Assert
        assert link.user_id == user.id

    @pytest.mark.asyncio
    async def test_attach_by_second_user_takes_over_link(self, github_profile):
        """Last user to attach an identity owns it."""
        # Arrange
        resolver, user_repo, link_repo = build_resolver()
        alice = await user_repo.save(make_user("alice", "Alice"))
        bob = await user_repo.save(make_user("bob", "Bob"))
        first = await resolver.resolve_attach(github_profile, alice)

        # Act
        second = await resolver.resolve_attach(github_profile, bob)

        # Assert
        assert second.id == first.id
        assert second.user_id == bob.id
        assert link_repo.count() == 1
        stored = await link_repo.find_by_provider("github", "gh-42")
        assert stored.user_id == bob.id

    @pytest.mark.asyncio
    async def test_reattach_refreshes_cached_profile_fields(self, github_profile):
        """Re-attaching updates avatar, profile URL and display name."""
        # Arrange
        resolver, user_repo, _ = build_resolver()
        user = await user_repo.save(make_user())
        await resolver.resolve_attach(github_profile, user)
        updated = github_profile.model_copy(
            update={
                "display_name": None,
                "photo_url": "https://example.com/new.png",
                "profile_url": None,
            }
        )

        # Act
        link = await resolver.resolve_attach(updated, user)

        # Assert
        assert link.display_name == "alice@example.com"
        assert link.avatar_url == "https://example.com/new.png"
        assert link.profile_url is None

    @pytest.mark.asyncio
    async def test_attach_rejects_invalid_profile(self):
        """Blank provider is rejected before any write."""
        # Arrange
        resolver, user_repo, link_repo = build_resolver()
        user = await user_repo.save(make_user())

        # Act / Assert
        with pytest.raises(InvalidExternalProfileError):
            await resolver.resolve_attach(
                ExternalProfile(provider="", external_id="gh-42"), user
            )

        assert link_repo.count() == 0
