"""In-memory user repository for testing."""

from typing import Iterable, Optional

from fedauth.domain.model import Group, User
from fedauth.domain.repository import UserRepository
from fedauth.domain.value import GroupId, UserId

from .unit_of_work import record_undo


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of UserRepository for testing."""

    def __init__(self, groups: Iterable[Group] = ()) -> None:
        self._users: dict[UserId, User] = {}
        self._groups: dict[GroupId, Group] = {group.id: group for group in groups}

    async def find_by_id(self, user_id: UserId) -> Optional[User]:
        """Find a user by ID."""
        return self._users.get(user_id)

    async def find_group_by_name(self, name: str) -> Optional[Group]:
        """Find a group by name."""
        for group in self._groups.values():
            if group.name == name:
                return group
        return None

    async def save(self, user: User) -> User:
        """Save or update a user."""
        previous = self._users.get(user.id)
        self._users[user.id] = user
        record_undo(lambda: self._restore(user.id, previous))
        return user

    def add_group(self, group: Group) -> Group:
        """Seed a group (the database seeds groups through migrations)."""
        self._groups[group.id] = group
        return group

    def count(self) -> int:
        """Number of stored users."""
        return len(self._users)

    def _restore(self, user_id: UserId, previous: User | None) -> None:
        if previous is None:
            self._users.pop(user_id, None)
        else:
            self._users[user_id] = previous
