"""OAuth provider adapters."""

from .client import GenericOAuthClient, MockOAuthClient, OAuthError

__all__ = ["GenericOAuthClient", "MockOAuthClient", "OAuthError"]
