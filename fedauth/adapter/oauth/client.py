"""OAuth 2.0 / OpenID Connect client implementation.

Implements the authorization code flow with PKCE against any provider
described by OAuthProviderSettings.
"""

from typing import Any
from urllib.parse import urlencode

import httpx
import logfire

from fedauth.adapter.error import ProviderError
from fedauth.config import OAuthProviderSettings
from fedauth.domain.service.auth_service import OAuthClient
from fedauth.domain.value import ExternalProfile


class OAuthError(ProviderError):
    """OAuth handshake error."""

    pass


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


class GenericOAuthClient(OAuthClient):
    """OAuth 2.0 client with PKCE support for one configured provider."""

    def __init__(
        self,
        provider: str,
        settings: OAuthProviderSettings,
        redirect_uri: str,
    ) -> None:
        """Initialize OAuth client.

        Args:
            provider: Provider key, stamped on every profile
            settings: Endpoints, credentials and claim names
            redirect_uri: Callback URL registered with the provider
        """
        self.provider = provider
        self.settings = settings
        self.redirect_uri = redirect_uri

    async def initiate_authorization(self, state: str, code_challenge: str) -> str:
        """Build the provider authorization URL.

        Args:
            state: State parameter for CSRF protection
            code_challenge: PKCE S256 challenge

        Returns:
            Authorization URL to redirect user to
        """
        params = {
            "response_type": "code",
            "client_id": self.settings.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.settings.scope,
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }

        logfire.info(
            "OAuth authorization initiated",
            provider=self.provider,
            redirect_uri=self.redirect_uri,
        )

        return f"{self.settings.authorize_url}?{urlencode(params)}"

    async def complete_authorization(
        self, code: str, code_verifier: str
    ) -> ExternalProfile:
        """Exchange the code and fetch the user's profile.

        Args:
            code: Authorization code from the callback
            code_verifier: PKCE verifier

        Returns:
            External profile built from the userinfo response

        Raises:
            OAuthError: If OAuth flow fails
        """
        access_token = await self._exchange_code_for_token(code, code_verifier)
        user_info = await self._get_user_info(access_token)
        profile = self.to_profile(user_info)

        logfire.info(
            "OAuth completed",
            provider=self.provider,
            external_id=profile.external_id,
        )
        return profile

    def to_profile(self, user_info: dict[str, Any]) -> ExternalProfile:
        """Map userinfo claims to an external profile.

        The email counts as verified only when the provider flags it so.
        A missing identifier yields an empty external_id, which identity
        resolution rejects.
        """
        s = self.settings
        email = _optional_str(user_info.get(s.email_claim))
        verified = user_info.get(s.email_verified_claim) is True

        return ExternalProfile(
            provider=self.provider,
            external_id=_optional_str(user_info.get(s.id_claim)) or "",
            display_name=_optional_str(user_info.get(s.name_claim)),
            email=email,
            email_verified=email if verified else None,
            photo_url=_optional_str(user_info.get(s.picture_claim)),
            profile_url=_optional_str(user_info.get(s.profile_claim)),
        )

    async def _exchange_code_for_token(self, code: str, code_verifier: str) -> str:
        """Exchange authorization code for access token.

        Raises:
            OAuthError: If token exchange fails
        """
        data = {
            "code": code,
            "grant_type": "authorization_code",
            "client_id": self.settings.client_id,
            "redirect_uri": self.redirect_uri,
            "code_verifier": code_verifier,
        }

        # Use Basic Auth with client credentials
        auth = (self.settings.client_id, self.settings.client_secret)

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.settings.token_url,
                    data=data,
                    auth=auth,
                    headers={"Accept": "application/json"},
                    timeout=30.0,
                )

                if response.status_code != 200:
                    logfire.error(
                        "OAuth token exchange failed",
                        provider=self.provider,
                        status_code=response.status_code,
                        error=response.text,
                    )
                    raise OAuthError(f"Token exchange failed: {response.status_code}")

                result = response.json()
                if "access_token" not in result:
                    raise OAuthError("Token response has no access_token")
                return result["access_token"]

        except httpx.HTTPError as e:
            logfire.error(
                "OAuth token exchange HTTP error", provider=self.provider, error=str(e)
            )
            raise OAuthError(f"HTTP error during token exchange: {e}")

    async def _get_user_info(self, access_token: str) -> dict[str, Any]:
        """Fetch userinfo claims.

        Raises:
            OAuthError: If API request fails
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    self.settings.userinfo_url,
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "Accept": "application/json",
                    },
                    timeout=30.0,
                )

                if response.status_code != 200:
                    logfire.error(
                        "OAuth userinfo request failed",
                        provider=self.provider,
                        status_code=response.status_code,
                        error=response.text,
                    )
                    raise OAuthError(
                        f"User info request failed: {response.status_code}"
                    )

                return response.json()

        except httpx.HTTPError as e:
            logfire.error(
                "OAuth userinfo HTTP error", provider=self.provider, error=str(e)
            )
            raise OAuthError(f"HTTP error fetching user info: {e}")


class MockOAuthClient(OAuthClient):
    """Mock OAuth client for testing.

    Returns deterministic profile data without making real API calls.
    The code "invalid" fails like a rejected token exchange.
    """

    def __init__(self, provider: str, profile: ExternalProfile | None = None):
        """Initialize mock client.

        Args:
            provider: Provider key
            profile: Profile to return; a fixed test profile by default
        """
        self.provider = provider
        self.profile = profile or ExternalProfile(
            provider=provider,
            external_id=f"{provider}-mock123",
            display_name="Mock User",
            email="mock@example.com",
            email_verified="mock@example.com",
            photo_url="https://example.com/avatar.jpg",
            profile_url=f"https://example.com/{provider}/mock123",
        )

    async def initiate_authorization(self, state: str, code_challenge: str) -> str:
        """Return mock authorization URL."""
        return (
            f"https://auth.example.com/{self.provider}/authorize?"
            f"{urlencode({'state': state, 'code_challenge': code_challenge, 'mock': 'true'})}"
        )

    async def complete_authorization(
        self, code: str, code_verifier: str
    ) -> ExternalProfile:
        """Return the configured profile."""
        _ = code_verifier  # Unused in mock
        if code == "invalid":
            raise OAuthError("Invalid authorization code")
        return self.profile
