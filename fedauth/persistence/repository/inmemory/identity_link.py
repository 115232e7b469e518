"""In-memory identity link repository for testing."""

from typing import Optional

from fedauth.domain.error import DuplicateIdentityError
from fedauth.domain.model import IdentityLink
from fedauth.domain.repository import IdentityLinkRepository
from fedauth.domain.value import IdentityLinkId, UserId

from .unit_of_work import record_undo


class InMemoryIdentityLinkRepository(IdentityLinkRepository):
    """In-memory implementation of IdentityLinkRepository for testing.

    Enforces the (provider, external_id) unique constraint like the
    database does.
    """

    def __init__(self) -> None:
        self._links: dict[IdentityLinkId, IdentityLink] = {}

    async def save(self, link: IdentityLink) -> IdentityLink:
        """Save identity link (insert or update by ID)."""
        for existing in self._links.values():
            if (
                existing.id != link.id
                and existing.provider == link.provider
                and existing.external_id == link.external_id
            ):
                raise DuplicateIdentityError(link.provider, link.external_id)

        previous = self._links.get(link.id)
        self._links[link.id] = link
        record_undo(lambda: self._restore(link.id, previous))
        return link

    async def find_by_provider(
        self, provider: str, external_id: str
    ) -> Optional[IdentityLink]:
        """Find identity link by provider and external ID."""
        for link in self._links.values():
            if link.provider == provider and link.external_id == external_id:
                return link
        return None

    async def find_all_by_user_id(self, user_id: UserId) -> list[IdentityLink]:
        """Find all identity links for a user."""
        matches = [link for link in self._links.values() if link.user_id == user_id]
        matches.sort(key=lambda link: link.created_at)
        return matches

    def count(self) -> int:
        """Number of stored links."""
        return len(self._links)

    def _restore(self, link_id: IdentityLinkId, previous: IdentityLink | None) -> None:
        if previous is None:
            self._links.pop(link_id, None)
        else:
            self._links[link_id] = previous
