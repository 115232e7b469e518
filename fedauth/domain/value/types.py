"""Domain value objects for fedauth.

Value objects are immutable and defined by their values, not identity.
"""

from datetime import datetime, timedelta, timezone
import secrets
from enum import Enum

from pydantic import Field

from fedauth.domain.value.common import ValueObject


class AuthMethod(str, Enum):
    """What a completed provider handshake is used for."""

    AUTH = "auth"  # Log in, registering a new account if allowed
    ATTACH = "attach"  # Link the identity to the logged-in user


ALLOW_METHODS = tuple(method.value for method in AuthMethod)


def first_present(*values: str | None, default: str) -> str:
    """Return the first value that is not None, else ``default``.

    Empty strings count as present.
    """
    for value in values:
        if value is not None:
            return value
    return default


def unique_token(prefix: str) -> str:
    """Generate a random placeholder token such as ``user3f9c0a1b2d4e5f60``.

    Used for generated logins and nameless accounts. Never derived from
    provider data so it carries no personal information.
    """
    return f"{prefix}{secrets.token_hex(8)}"


class ExternalProfile(ValueObject):
    """Normalized result of a completed external authentication.

    Produced by an OAuth client once the provider handshake has been
    verified. Optional fields are whatever the provider chose to share.
    """

    provider: str  # Configured provider key, e.g. "github"
    external_id: str  # Stable, provider-scoped identifier
    display_name: str | None = None
    email: str | None = None
    email_verified: str | None = None  # Verified email address, not a flag
    photo_url: str | None = None
    profile_url: str | None = None

    @property
    def link_display_name(self) -> str:
        """Display name cached on the identity link.

        Note the order: the verified email is preferred over the raw email
        even though neither is a name. This is intentional and must not be
        reordered. external_id always terminates the chain.
        """
        return first_present(
            self.display_name,
            self.email_verified,
            self.email,
            default=self.external_id,
        )

    @property
    def user_display_name(self) -> str:
        """Display name for a newly registered user."""
        if self.display_name is not None:
            return self.display_name
        return unique_token(self.provider)


class PendingAuthorization(ValueObject):
    """A provider handshake waiting for its callback."""

    provider: str
    method: AuthMethod
    redirect_target: str  # Opaque, possibly URL-encoded
    code_verifier: str  # PKCE verifier for the token exchange
    issued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def is_expired(self, ttl: timedelta, now: datetime | None = None) -> bool:
        """Whether the callback came too late to be accepted."""
        return (now or datetime.now(timezone.utc)) - self.issued_at >= ttl
