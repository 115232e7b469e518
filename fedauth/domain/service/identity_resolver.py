"""Identity resolution domain service.

Turns a verified external profile into a local account: the user an
existing identity link points to, a freshly registered user, or (for
attach) a link owned by the logged-in user.
"""

from datetime import datetime, timezone
from uuid import uuid4

import logfire

from fedauth.config import AuthSettings
from fedauth.domain.error import (
    AutoRegisterDisabledError,
    DuplicateIdentityError,
    InvalidExternalProfileError,
    MissingDefaultGroupError,
    NotFoundError,
)
from fedauth.domain.model import UNUSABLE_PASSWORD_HASH, IdentityLink, User
from fedauth.domain.repository import (
    IdentityLinkRepository,
    UnitOfWork,
    UserRepository,
)
from fedauth.domain.value import ExternalProfile, IdentityLinkId, UserId, unique_token

from .base import Service


def ensure_valid_profile(profile: ExternalProfile) -> None:
    """Reject profiles that cannot identify anybody.

    Raises:
        InvalidExternalProfileError: If provider or external_id is blank
    """
    if not profile.provider.strip():
        raise InvalidExternalProfileError("External profile has no provider")
    if not profile.external_id.strip():
        raise InvalidExternalProfileError(
            f"External profile from {profile.provider} has no identifier"
        )


class IdentityResolver(Service):
    """Resolves external identities to local users.

    A (provider, external_id) pair maps to at most one user. The store's
    unique constraint is the arbiter when two requests race to link the
    same identity; the loser re-reads instead of creating a second user.
    """

    def __init__(
        self,
        identity_link_repository: IdentityLinkRepository,
        user_repository: UserRepository,
        unit_of_work: UnitOfWork,
        auth_settings: AuthSettings,
    ) -> None:
        """Initialize identity resolver.

        Args:
            identity_link_repository: Identity link repository
            user_repository: User repository
            unit_of_work: Transaction boundary shared by both repositories
            auth_settings: Authentication settings (auto-register, default group)
        """
        self.identity_link_repository = identity_link_repository
        self.user_repository = user_repository
        self.unit_of_work = unit_of_work
        self.auth_settings = auth_settings

    async def resolve_login(self, profile: ExternalProfile) -> User:
        """Find or register the user behind an external profile.

        Steps:
        1. Look up the identity link; if found return its user unchanged
        2. Otherwise register a new user and link, if auto-register is on
        3. If a concurrent request registered the identity first, return
           the user it created

        Args:
            profile: Verified external profile

        Returns:
            The local user

        Raises:
            InvalidExternalProfileError: If the profile lacks provider or id
            AutoRegisterDisabledError: If the identity is unknown and
                auto-registration is disabled
            MissingDefaultGroupError: If the default group does not exist
            NotFoundError: If a link points at a user that no longer exists
        """
        ensure_valid_profile(profile)

        with logfire.span(
            "identity_resolver.resolve_login",
            provider=profile.provider,
            external_id=profile.external_id,
        ):
            user = await self._find_linked_user(profile)
            if user:
                logfire.info(
                    "Existing identity resolved",
                    user_id=str(user.id),
                    provider=profile.provider,
                )
                return user

            if not self.auth_settings.allow_auto_register:
                logfire.warn(
                    "Login rejected - auto-register disabled",
                    provider=profile.provider,
                    external_id=profile.external_id,
                )
                raise AutoRegisterDisabledError(profile.provider, profile.external_id)

            try:
                return await self._register(profile)
            except DuplicateIdentityError:
                logfire.warn(
                    "Identity registered concurrently - re-resolving",
                    provider=profile.provider,
                    external_id=profile.external_id,
                )
                user = await self._find_linked_user(profile)
                if not user:
                    raise
                return user

    async def resolve_attach(
        self, profile: ExternalProfile, current_user: User
    ) -> IdentityLink:
        """Link an external identity to the logged-in user.

        An existing link is reassigned to ``current_user`` whoever owned it
        before, and its cached profile fields are refreshed.

        Args:
            profile: Verified external profile
            current_user: Authenticated user the identity is attached to

        Returns:
            The saved identity link

        Raises:
            InvalidExternalProfileError: If the profile lacks provider or id
        """
        ensure_valid_profile(profile)

        with logfire.span(
            "identity_resolver.resolve_attach",
            provider=profile.provider,
            external_id=profile.external_id,
            user_id=str(current_user.id),
        ):
            try:
                return await self._attach(profile, current_user)
            except DuplicateIdentityError:
                # Inserted concurrently; the retry takes the update path
                logfire.warn(
                    "Identity attached concurrently - retrying",
                    provider=profile.provider,
                    external_id=profile.external_id,
                )
                return await self._attach(profile, current_user)

    async def _find_linked_user(self, profile: ExternalProfile) -> User | None:
        link = await self.identity_link_repository.find_by_provider(
            profile.provider, profile.external_id
        )
        if not link:
            return None

        user = await self.user_repository.find_by_id(link.user_id)
        if not user:
            logfire.error(
                "Identity link points at missing user",
                link_id=str(link.id),
                user_id=str(link.user_id),
            )
            raise NotFoundError("User", str(link.user_id))
        return user

    async def _register(self, profile: ExternalProfile) -> User:
        async with self.unit_of_work.transaction():
            group_name = self.auth_settings.default_group
            group = await self.user_repository.find_group_by_name(group_name)
            if not group:
                logfire.error("Default group missing", group=group_name)
                raise MissingDefaultGroupError(group_name)

            now = datetime.now(timezone.utc)
            user = User(
                id=UserId(uuid4()),
                login=unique_token("user"),
                display_name=profile.user_display_name,
                email=profile.email,
                password_hash=UNUSABLE_PASSWORD_HASH,  # Federated-only account
                group_ids=[group.id],
                created_at=now,
                updated_at=now,
            )
            await self.user_repository.save(user)

            link = IdentityLink(
                id=IdentityLinkId(uuid4()),
                user_id=user.id,
                provider=profile.provider,
                external_id=profile.external_id,
                avatar_url=profile.photo_url,
                profile_url=profile.profile_url,
                display_name=profile.link_display_name,
                created_at=now,
                updated_at=now,
            )
            await self.identity_link_repository.save(link)

        logfire.info(
            "New user registered",
            user_id=str(user.id),
            login=user.login,
            provider=profile.provider,
        )
        return user

    async def _attach(self, profile: ExternalProfile, current_user: User) -> IdentityLink:
        async with self.unit_of_work.transaction():
            link = await self.identity_link_repository.find_by_provider(
                profile.provider, profile.external_id
            )
            now = datetime.now(timezone.utc)

            if not link:
                link = IdentityLink(
                    id=IdentityLinkId(uuid4()),
                    user_id=current_user.id,
                    provider=profile.provider,
                    external_id=profile.external_id,
                    display_name=profile.link_display_name,
                    created_at=now,
                    updated_at=now,
                )
            elif link.user_id != current_user.id:
                # No ownership check: the last user to attach wins.
                logfire.warn(
                    "Identity link reassigned",
                    provider=profile.provider,
                    external_id=profile.external_id,
                    previous_user_id=str(link.user_id),
                    user_id=str(current_user.id),
                )

            link = link.model_copy(
                update={
                    "avatar_url": profile.photo_url,
                    "profile_url": profile.profile_url,
                    "display_name": profile.link_display_name,
                    "user_id": current_user.id,
                    "updated_at": now,
                }
            )
            saved = await self.identity_link_repository.save(link)

        logfire.info(
            "Identity attached",
            link_id=str(saved.id),
            user_id=str(current_user.id),
            provider=profile.provider,
        )
        return saved
