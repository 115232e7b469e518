"""Domain model entities for fedauth."""

from fedauth.domain.model.identity_link import IdentityLink
from fedauth.domain.model.user import UNUSABLE_PASSWORD_HASH, Group, User

__all__ = [
    "User",
    "Group",
    "IdentityLink",
    "UNUSABLE_PASSWORD_HASH",
]
