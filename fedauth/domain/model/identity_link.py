"""Identity link entity.

Maps an external provider identity to a local user account.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from fedauth.domain.model.common import DomainModel
from fedauth.domain.value import IdentityLinkId, UserId


class IdentityLink(DomainModel):
    """External identity linked to a user account.

    (provider, external_id) is the natural key: it maps to at most one
    user. Display fields are a cached copy of the provider profile and
    are overwritten whenever the identity is attached again.
    """

    id: IdentityLinkId
    user_id: UserId
    provider: str
    external_id: str  # Permanent ID from provider
    display_name: str
    avatar_url: Optional[str] = None
    profile_url: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
