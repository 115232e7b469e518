"""Authentication routes."""

import logging
from urllib.parse import parse_qsl, unquote, urlencode, urlsplit, urlunsplit

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from fedauth.adapter.oauth import OAuthError
from fedauth.adapter.session import CookieSessionAuthority
from fedauth.application.usecase.auth import (
    AttachUseCase,
    GetCurrentUserUseCase,
    LoginUseCase,
)
from fedauth.application.usecase.auth.attach import AttachRequest
from fedauth.application.usecase.auth.get_current_user import (
    GetCurrentUserRequest,
    GetCurrentUserResponse,
)
from fedauth.application.usecase.auth.login import LoginRequest
from fedauth.config import Settings
from fedauth.domain.error import (
    IdentityError,
    InvalidAuthorizationError,
    NotAuthenticatedError,
)
from fedauth.domain.service import AuthService
from fedauth.domain.value import AuthMethod

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"], route_class=DishkaRoute)

OAUTH_ERROR_PARAM = "oauth-error"


class LogoutResponse(BaseModel):
    """Logout response."""

    success: bool
    message: str


class AuthStatusResponse(BaseModel):
    """Response for checking authentication status.

    Used by /auth/me to return current user if authenticated,
    or indicate unauthenticated state without raising an error.
    """

    authenticated: bool
    user: GetCurrentUserResponse | None = None


def error_kind(error: Exception) -> str:
    """Value of the ``oauth-error`` query parameter for a callback failure."""
    if isinstance(error, IdentityError):
        return error.kind.value
    if isinstance(error, (OAuthError, InvalidAuthorizationError)):
        return "auth_failed"
    if isinstance(error, NotAuthenticatedError):
        return "not_authenticated"
    return "unexpected"


def with_oauth_error(url: str, kind: str) -> str:
    """Append ``oauth-error=<kind>`` to ``url``, keeping its existing query."""
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.append((OAUTH_ERROR_PARAM, kind))
    return urlunsplit(parts._replace(query=urlencode(query)))


def is_allowed_redirect(target: str, frontend_url: str) -> bool:
    """Whether ``target`` stays on the frontend.

    Accepts paths relative to the frontend and absolute URLs on the
    frontend origin. ``target`` may be URL-encoded.
    """
    parts = urlsplit(unquote(target))
    if not parts.scheme and not parts.netloc:
        return not parts.path.startswith("//") and "\\" not in parts.path
    frontend = urlsplit(frontend_url)
    return (parts.scheme, parts.netloc) == (frontend.scheme, frontend.netloc)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


# Registered before /{provider}/{method}, which would otherwise match it
@router.get("/callback/{provider}")
async def oauth_callback(
    provider: str,
    state: str,
    request: Request,
    auth_service: FromDishka[AuthService],
    login_use_case: FromDishka[LoginUseCase],
    attach_use_case: FromDishka[AttachUseCase],
    get_current_user_use_case: FromDishka[GetCurrentUserUseCase],
    session: FromDishka[CookieSessionAuthority],
    settings: FromDishka[Settings],
    code: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    """Handle the provider callback and finish the handshake.

    Dispatches on the method chosen when the handshake started:
    ``auth`` logs the user in (registering if allowed), ``attach`` links
    the identity to the user already logged in.

    Every outcome is a 302 to the redirect target. Failures add the
    ``oauth-error`` query parameter naming what went wrong. A provider
    that ends the handshake itself (``error`` instead of ``code``, e.g.
    the user denied access) counts as ``auth_failed``.

    Example:
        GET /auth/callback/github?code=abc123&state=xyz789

        Redirects to: http://localhost:3000/
        Sets cookie: auth_token
    """
    logger.info(f"OAuth callback received: provider={provider}")

    if error or not code:
        try:
            pending = await auth_service.cancel(provider, state, reason=error)
        except InvalidAuthorizationError as e:
            logger.error(f"OAuth handshake failed for {provider}: {str(e)}")
            return _redirect(with_oauth_error(settings.api.frontend_url, error_kind(e)))

        logger.warning(f"OAuth handshake ended by {provider}: {error or 'no code'}")
        if pending.method is AuthMethod.AUTH:
            await session.logout()
        target = unquote(pending.redirect_target)
        return session.apply(_redirect(with_oauth_error(target, "auth_failed")))

    try:
        pending, profile = await auth_service.complete(provider, code, state)
    except (InvalidAuthorizationError, OAuthError) as e:
        # The pending authorization (and so the redirect target) is gone
        logger.error(f"OAuth handshake failed for {provider}: {str(e)}")
        return _redirect(with_oauth_error(settings.api.frontend_url, error_kind(e)))

    target = unquote(pending.redirect_target)

    try:
        if pending.method is AuthMethod.ATTACH:
            token = request.cookies.get(settings.auth.cookie_name)
            if not token:
                raise NotAuthenticatedError("Attach requires a logged-in user")
            current_user = await get_current_user_use_case.get_user(token)
            attach_response = await attach_use_case.execute(
                AttachRequest(
                    profile=profile,
                    redirect_target=pending.redirect_target,
                    current_user=current_user,
                )
            )
            logger.info(
                f"Identity {provider} attached to user {attach_response.user_id}"
            )
            redirect_url = attach_response.redirect_url
        else:
            login_response = await login_use_case.execute(
                LoginRequest(profile=profile, redirect_target=pending.redirect_target)
            )
            logger.info(f"Login successful for user: {login_response.login}")
            redirect_url = login_response.redirect_url

    except IdentityError as e:
        logger.error(f"Identity resolution failed ({e.kind.value}): {str(e)}")
        redirect_url = with_oauth_error(target, error_kind(e))
    except NotAuthenticatedError as e:
        logger.error(f"Attach without a valid session: {str(e)}")
        redirect_url = with_oauth_error(target, error_kind(e))
    except Exception as e:
        logger.exception(f"Unexpected error during OAuth callback: {str(e)}")
        redirect_url = with_oauth_error(target, error_kind(e))

    # Login failures also carry the session logout
    return session.apply(_redirect(redirect_url))


@router.get("/{provider}/{method}")
async def initiate(
    provider: str,
    method: str,
    auth_service: FromDishka[AuthService],
    settings: FromDishka[Settings],
    redirect: str | None = None,
) -> RedirectResponse:
    """Start a provider handshake and redirect to the provider.

    Args:
        provider: Configured provider key, e.g. ``github``
        method: ``auth`` to log in, ``attach`` to link to the current user
        redirect: Where to send the user afterwards (URL-encoded);
            the frontend root by default

    Example:
        GET /auth/github/auth?redirect=http%3A%2F%2Flocalhost%3A3000%2Fhome

        Redirects to: https://github.com/login/oauth/authorize?...
    """
    redirect_target = redirect or settings.api.frontend_url
    if not is_allowed_redirect(redirect_target, settings.api.frontend_url):
        logger.warning(f"Rejected redirect target outside the frontend: {redirect}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Redirect target must be on the frontend",
        )

    try:
        logger.info(f"Initiating {provider} {method}")
        auth_url = await auth_service.initiate(provider, method, redirect_target)
    except InvalidAuthorizationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except OAuthError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to initiate login: {str(e)}",
        )

    return _redirect(auth_url)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    response: Response,
    session: FromDishka[CookieSessionAuthority],
) -> LogoutResponse:
    """Logout user by clearing authentication cookie."""
    await session.logout()
    session.apply(response)
    return LogoutResponse(success=True, message="Successfully logged out")


@router.get("/me", response_model=AuthStatusResponse)
async def get_current_user(
    request: Request,
    get_current_user_use_case: FromDishka[GetCurrentUserUseCase],
    settings: FromDishka[Settings],
) -> AuthStatusResponse:
    """Get current user if authenticated, or return unauthenticated status.

    Safe to call without a session: returns ``authenticated=false``
    instead of an error.

    Examples:
        Authenticated:
        {
            "authenticated": true,
            "user": {"user_id": "...", "login": "github1a2b3c4d5e6f7a8b", ...}
        }

        Unauthenticated:
        {
            "authenticated": false,
            "user": null
        }
    """
    token = request.cookies.get(settings.auth.cookie_name)
    if not token:
        return AuthStatusResponse(authenticated=False)

    try:
        user = await get_current_user_use_case.execute(
            GetCurrentUserRequest(token=token)
        )
        return AuthStatusResponse(authenticated=True, user=user)
    except NotAuthenticatedError:
        # Invalid, expired or orphaned token
        return AuthStatusResponse(authenticated=False)
