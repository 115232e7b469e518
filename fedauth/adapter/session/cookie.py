"""JWT cookie session authority."""

import logfire
from fastapi import Response

from fedauth.config import AuthSettings
from fedauth.domain.model import User
from fedauth.domain.service import JWTService, SessionAuthority


class CookieSessionAuthority(SessionAuthority):
    """Session held in an HTTP-only cookie carrying a signed JWT.

    One instance per request. Calls only record the outcome; ``apply``
    writes it onto the response that is finally sent.
    """

    def __init__(
        self, jwt_service: JWTService, auth_settings: AuthSettings, secure: bool
    ) -> None:
        """Initialize session authority.

        Args:
            jwt_service: Issues the session token
            auth_settings: Cookie name and token lifetime
            secure: Whether the cookie is restricted to HTTPS
        """
        self.jwt_service = jwt_service
        self.auth_settings = auth_settings
        self.secure = secure
        self.token: str | None = None
        self.logged_out = False

    async def set_authorized(self, user: User, context: dict[str, str]) -> None:
        self.token = self.jwt_service.create_token(
            user_id=str(user.id),
            login=user.login,
            authenticate=context.get("authenticate", ""),
        )
        self.logged_out = False
        logfire.info("Session authorized", user_id=str(user.id), **context)

    async def logout(self) -> None:
        self.token = None
        self.logged_out = True
        logfire.info("Session cleared")

    def apply(self, response: Response) -> Response:
        """Write the recorded session change onto ``response``.

        Args:
            response: Outgoing response (usually a redirect)

        Returns:
            The same response
        """
        if self.logged_out:
            response.delete_cookie(key=self.auth_settings.cookie_name, path="/")
        elif self.token:
            response.set_cookie(
                key=self.auth_settings.cookie_name,
                value=self.token,
                httponly=True,
                secure=self.secure,
                samesite="lax",
                path="/",
                max_age=self.auth_settings.jwt_expiry_days * 24 * 60 * 60,
            )
        return response
