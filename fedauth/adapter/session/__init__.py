"""Session adapters."""

from .cookie import CookieSessionAuthority

__all__ = ["CookieSessionAuthority"]
