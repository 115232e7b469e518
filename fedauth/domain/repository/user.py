"""User repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from fedauth.domain.model.user import Group, User
from fedauth.domain.value import UserId


class UserRepository(ABC):
    """Repository for User aggregate.

    Defines the contract for user persistence operations.
    Implementations live in the infrastructure layer.
    """

    @abstractmethod
    async def find_by_id(self, user_id: UserId) -> Optional[User]:
        """Find a user by ID.

        Args:
            user_id: The user's unique identifier

        Returns:
            The user if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_group_by_name(self, name: str) -> Optional[Group]:
        """Find a group by its name.

        Args:
            name: Exact group name

        Returns:
            The group if found, None otherwise
        """
        pass

    @abstractmethod
    async def save(self, user: User) -> User:
        """Save a user (create or update), including group membership.

        Args:
            user: The user to save

        Returns:
            The saved user
        """
        pass
