"""PostgreSQL implementation of User repository."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fedauth.domain.error import PersistenceFailureError
from fedauth.domain.model import Group, User
from fedauth.domain.repository import UserRepository
from fedauth.domain.value import UserId
from fedauth.persistence.database import storage_errors
from fedauth.persistence.mappers import row_to_group, row_to_user, user_to_dict
from fedauth.persistence.tables import groups_table, user_groups_table, users_table


class PostgresUserRepository(UserRepository):
    """PostgreSQL implementation of UserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_id(self, user_id: UserId) -> Optional[User]:
        """Find a user by ID, with group membership.

        Args:
            user_id: User ID to look up

        Returns:
            User if found, None otherwise
        """
        with storage_errors("user.find_by_id"):
            result = await self.session.execute(
                select(users_table).where(users_table.c.id == user_id)
            )
            row = result.mappings().first()
            if not row:
                return None

            groups = await self.session.execute(
                select(user_groups_table.c.group_id).where(
                    user_groups_table.c.user_id == user_id
                )
            )
        return row_to_user(dict(row), groups.scalars().all())

    async def find_group_by_name(self, name: str) -> Optional[Group]:
        """Find a group by name.

        Args:
            name: Exact group name

        Returns:
            Group if found, None otherwise
        """
        stmt = select(groups_table).where(groups_table.c.name == name)
        with storage_errors("user.find_group_by_name"):
            result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_group(dict(row)) if row else None

    async def save(self, user: User) -> User:
        """Save user and replace its group membership.

        Args:
            user: User to save

        Returns:
            Saved user
        """
        user_dict = user_to_dict(user)

        try:
            with storage_errors("user.save"):
                exists = await self.session.execute(
                    select(users_table.c.id).where(users_table.c.id == user.id)
                )
                if exists.first():
                    await self.session.execute(
                        users_table.update()
                        .where(users_table.c.id == user.id)
                        .values(**user_dict)
                    )
                    await self.session.execute(
                        user_groups_table.delete().where(
                            user_groups_table.c.user_id == user.id
                        )
                    )
                else:
                    await self.session.execute(users_table.insert().values(**user_dict))

                if user.group_ids:
                    await self.session.execute(
                        user_groups_table.insert(),
                        [
                            {"user_id": user.id, "group_id": group_id}
                            for group_id in user.group_ids
                        ],
                    )
                await self.session.flush()
        except IntegrityError as e:
            raise PersistenceFailureError("user.save", str(e)) from e

        return user
