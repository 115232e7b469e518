"""Domain services."""

from .auth_service import AuthorizationStateStore, AuthService, OAuthClient
from .base import Service
from .identity_resolver import IdentityResolver, ensure_valid_profile
from .jwt_service import JWTService
from .session import AUTH_CONTEXT, SessionAuthority

__all__ = [
    "AUTH_CONTEXT",
    "AuthService",
    "AuthorizationStateStore",
    "IdentityResolver",
    "JWTService",
    "OAuthClient",
    "Service",
    "SessionAuthority",
    "ensure_valid_profile",
]
