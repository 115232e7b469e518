"""User aggregate root and groups.

Users are owned by the account subsystem; fedauth only provisions
federated-only accounts and reads them back.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from fedauth.domain.model.common import DomainModel
from fedauth.domain.value import GroupId, UserId

# Password hash of accounts that can only sign in through a provider
UNUSABLE_PASSWORD_HASH = ""


class Group(DomainModel):
    """Named user group."""

    id: GroupId
    name: str


class User(DomainModel):
    """Local user account.

    A user may have several identity links; each link belongs to
    exactly one user.
    """

    id: UserId
    login: str
    display_name: str
    email: Optional[str] = None
    password_hash: str = UNUSABLE_PASSWORD_HASH
    group_ids: list[GroupId] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
