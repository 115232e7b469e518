"""Domain value objects for fedauth."""

from fedauth.domain.value.identifiers import GroupId, IdentityLinkId, UserId
from fedauth.domain.value.types import (
    ALLOW_METHODS,
    AuthMethod,
    ExternalProfile,
    PendingAuthorization,
    first_present,
    unique_token,
)

__all__ = [
    # Identifiers
    "UserId",
    "GroupId",
    "IdentityLinkId",
    # Types
    "ALLOW_METHODS",
    "AuthMethod",
    "ExternalProfile",
    "PendingAuthorization",
    "first_present",
    "unique_token",
]
