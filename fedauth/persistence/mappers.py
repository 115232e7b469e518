"""Mappers for converting between database rows and domain models.

Since we're using Pydantic domain models (immutable), we use manual mapping
instead of SQLAlchemy's classical imperative mapping.
"""

from typing import Any, Dict, Iterable
from uuid import UUID

from fedauth.domain.model import Group, IdentityLink, User
from fedauth.domain.value import GroupId, IdentityLinkId, UserId


def _uuid(value: Any) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def row_to_user(row: Dict[str, Any], group_ids: Iterable[Any] = ()) -> User:
    """Convert database row to User domain model.

    Args:
        row: Database row as dict
        group_ids: IDs from the user_groups junction table

    Returns:
        User domain model
    """
    return User(
        id=UserId(_uuid(row["id"])),
        login=row["login"],
        display_name=row["display_name"],
        email=row.get("email"),
        password_hash=row["password_hash"],
        group_ids=[GroupId(_uuid(group_id)) for group_id in group_ids],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def user_to_dict(user: User) -> Dict[str, Any]:
    """Convert User domain model to a users row.

    Group membership lives in user_groups and is excluded.
    """
    return user.model_dump(exclude={"group_ids"})


def row_to_group(row: Dict[str, Any]) -> Group:
    """Convert database row to Group domain model."""
    return Group(id=GroupId(_uuid(row["id"])), name=row["name"])


def row_to_identity_link(row: Dict[str, Any]) -> IdentityLink:
    """Convert database row to IdentityLink domain model.

    Args:
        row: Database row as dict

    Returns:
        IdentityLink domain model
    """
    return IdentityLink(
        id=IdentityLinkId(_uuid(row["id"])),
        user_id=UserId(_uuid(row["user_id"])),
        provider=row["provider"],
        external_id=row["external_id"],
        display_name=row["display_name"],
        avatar_url=row.get("avatar_url"),
        profile_url=row.get("profile_url"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def identity_link_to_dict(link: IdentityLink) -> Dict[str, Any]:
    """Convert IdentityLink domain model to database dict."""
    return link.model_dump()
