"""Identity link repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from fedauth.domain.model.identity_link import IdentityLink
from fedauth.domain.value import UserId


class IdentityLinkRepository(ABC):
    """Repository for IdentityLink entity.

    Manages the mapping between external provider identities and
    local user accounts.
    """

    @abstractmethod
    async def find_by_provider(
        self, provider: str, external_id: str
    ) -> Optional[IdentityLink]:
        """Find a link by provider and external identifier.

        Exact match only.

        Args:
            provider: The provider key
            external_id: The user's ID on that provider

        Returns:
            The link if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_all_by_user_id(self, user_id: UserId) -> list[IdentityLink]:
        """Get all links owned by a user.

        Args:
            user_id: The user's unique identifier

        Returns:
            List of links (may be empty), oldest first
        """
        pass

    @abstractmethod
    async def save(self, link: IdentityLink) -> IdentityLink:
        """Save a link (create or update).

        Args:
            link: The link to save

        Returns:
            The saved link

        Raises:
            DuplicateIdentityError: If another link already holds the
                same (provider, external_id)
            PersistenceFailureError: On any other storage fault
        """
        pass
