"""Session authority interface."""

from fedauth.domain.model.user import User

# Session context recorded for logins completed through an external provider
AUTH_CONTEXT: dict[str, str] = {"authenticate": "hybridauth"}


class SessionAuthority:
    """Marks the current session as authenticated or clears it."""

    async def set_authorized(self, user: User, context: dict[str, str]) -> None:
        """Authenticate the current session as ``user``.

        Args:
            user: The user the session now belongs to
            context: Extra session attributes, e.g. the login method
        """
        raise NotImplementedError

    async def logout(self) -> None:
        """Clear any authentication state of the current session."""
        raise NotImplementedError
