"""IdentityLink repository implementation using PostgreSQL."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fedauth.domain.error import DuplicateIdentityError, PersistenceFailureError
from fedauth.domain.model import IdentityLink
from fedauth.domain.repository import IdentityLinkRepository
from fedauth.domain.value import IdentityLinkId, UserId
from fedauth.persistence.database import storage_errors
from fedauth.persistence.mappers import identity_link_to_dict, row_to_identity_link
from fedauth.persistence.tables import (
    PROVIDER_IDENTITY_CONSTRAINT,
    identity_links_table,
)


class PostgresIdentityLinkRepository(IdentityLinkRepository):
    """PostgreSQL implementation of IdentityLinkRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def save(self, link: IdentityLink) -> IdentityLink:
        """Save identity link to database.

        Args:
            link: IdentityLink to save

        Returns:
            Saved IdentityLink

        Raises:
            DuplicateIdentityError: If (provider, external_id) is taken
            PersistenceFailureError: On any other storage fault
        """
        link_dict = identity_link_to_dict(link)

        try:
            with storage_errors("identity_link.save"):
                existing = await self._find_by_id(link.id)

                if existing:
                    stmt = (
                        identity_links_table.update()
                        .where(identity_links_table.c.id == link.id)
                        .values(**link_dict)
                    )
                else:
                    stmt = identity_links_table.insert().values(**link_dict)

                await self.session.execute(stmt)
                await self.session.flush()
        except IntegrityError as e:
            if PROVIDER_IDENTITY_CONSTRAINT in str(e.orig):
                raise DuplicateIdentityError(link.provider, link.external_id) from e
            raise PersistenceFailureError("identity_link.save", str(e)) from e

        return link

    async def find_by_provider(
        self, provider: str, external_id: str
    ) -> Optional[IdentityLink]:
        """Get identity link by provider and external ID.

        Args:
            provider: Provider key
            external_id: Provider-specific user ID

        Returns:
            IdentityLink if found, None otherwise
        """
        stmt = select(identity_links_table).where(
            identity_links_table.c.provider == provider,
            identity_links_table.c.external_id == external_id,
        )
        with storage_errors("identity_link.find_by_provider"):
            result = await self.session.execute(stmt)
        row = result.mappings().first()

        if not row:
            return None

        return row_to_identity_link(dict(row))

    async def find_all_by_user_id(self, user_id: UserId) -> list[IdentityLink]:
        """Find all identity links for a user.

        Args:
            user_id: User ID to find links for

        Returns:
            List of IdentityLink objects (may be empty)
        """
        stmt = (
            select(identity_links_table)
            .where(identity_links_table.c.user_id == user_id)
            .order_by(identity_links_table.c.created_at)
        )
        with storage_errors("identity_link.find_all_by_user_id"):
            result = await self.session.execute(stmt)
        rows = result.mappings().all()

        return [row_to_identity_link(dict(row)) for row in rows]

    async def _find_by_id(self, link_id: IdentityLinkId) -> Optional[IdentityLink]:
        stmt = select(identity_links_table).where(identity_links_table.c.id == link_id)
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return row_to_identity_link(dict(row)) if row else None
