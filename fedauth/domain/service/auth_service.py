"""Authentication domain service."""

from datetime import datetime, timedelta, timezone
import secrets

import logfire

from fedauth.domain.error import InvalidAuthorizationError
from fedauth.domain.value import AuthMethod, ExternalProfile, PendingAuthorization
from fedauth.util.pkce import generate_pkce_pair

from .base import Service


class OAuthClient:
    """Generic OAuth client interface for all providers."""

    async def initiate_authorization(self, state: str, code_challenge: str) -> str:
        """Initiate OAuth authorization flow.

        Args:
            state: State parameter for CSRF protection
            code_challenge: PKCE S256 challenge

        Returns:
            Authorization URL to redirect user to
        """
        raise NotImplementedError

    async def complete_authorization(
        self, code: str, code_verifier: str
    ) -> ExternalProfile:
        """Complete OAuth authorization flow.

        Args:
            code: Authorization code from OAuth callback
            code_verifier: PKCE verifier matching the challenge sent earlier

        Returns:
            Verified external profile
        """
        raise NotImplementedError


class AuthorizationStateStore:
    """Pending authorizations keyed by OAuth state.

    Simple in-memory storage, shared across requests of one process.
    Use Redis or similar when running several workers.

    Entries older than ``ttl`` are never returned, and are dropped
    whenever a new handshake starts, so abandoned handshakes do not
    accumulate.
    """

    def __init__(self, ttl: timedelta = timedelta(minutes=10)) -> None:
        self.ttl = ttl
        self._pending: dict[str, PendingAuthorization] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def put(self, state: str, pending: PendingAuthorization) -> None:
        self.purge_expired()
        self._pending[state] = pending

    def pop(self, state: str) -> PendingAuthorization | None:
        pending = self._pending.pop(state, None)
        if pending is None or pending.is_expired(self.ttl):
            return None
        return pending

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were dropped."""
        now = datetime.now(timezone.utc)
        expired = [
            state
            for state, pending in self._pending.items()
            if pending.is_expired(self.ttl, now)
        ]
        for state in expired:
            del self._pending[state]
        if expired:
            logfire.info("Expired authorizations purged", count=len(expired))
        return len(expired)


class AuthService(Service):
    """Domain service for the provider handshake.

    Coordinates the configured OAuth clients and remembers, per state,
    what the callback should do (``auth`` or ``attach``) and where to
    send the user afterwards.
    """

    def __init__(
        self,
        oauth_clients: dict[str, OAuthClient],
        state_store: AuthorizationStateStore,
    ) -> None:
        """Initialize auth service.

        Args:
            oauth_clients: Map of provider key to OAuth client implementation
            state_store: Pending authorization store
        """
        self.oauth_clients = oauth_clients
        self.state_store = state_store

    def _get_client(self, provider: str) -> OAuthClient:
        client = self.oauth_clients.get(provider)
        if not client:
            raise InvalidAuthorizationError(f"Unsupported provider: {provider}")
        return client

    async def initiate(self, provider: str, method: str, redirect_target: str) -> str:
        """Start a provider handshake.

        Args:
            provider: Provider key
            method: "auth" or "attach"
            redirect_target: Where to send the user once finished

        Returns:
            Authorization URL to redirect user to

        Raises:
            InvalidAuthorizationError: If provider or method is not supported
        """
        try:
            auth_method = AuthMethod(method)
        except ValueError:
            raise InvalidAuthorizationError(f"Unsupported method: {method}")

        client = self._get_client(provider)

        state = secrets.token_urlsafe(32)
        code_verifier, code_challenge = generate_pkce_pair()
        self.state_store.put(
            state,
            PendingAuthorization(
                provider=provider,
                method=auth_method,
                redirect_target=redirect_target,
                code_verifier=code_verifier,
            ),
        )

        logfire.info(
            "Authorization initiated", provider=provider, method=auth_method.value
        )
        return await client.initiate_authorization(state, code_challenge)

    async def complete(
        self, provider: str, code: str, state: str
    ) -> tuple[PendingAuthorization, ExternalProfile]:
        """Finish a provider handshake.

        Args:
            provider: Provider key from the callback URL
            code: Authorization code from the callback
            state: State parameter from the callback

        Returns:
            The pending authorization and the verified external profile

        Raises:
            InvalidAuthorizationError: If the state is unknown or was issued
                for another provider
        """
        pending = self._take_pending(provider, state)

        client = self._get_client(provider)
        profile = await client.complete_authorization(code, pending.code_verifier)

        logfire.info(
            "Authorization completed",
            provider=provider,
            external_id=profile.external_id,
            method=pending.method.value,
        )
        return pending, profile

    async def cancel(
        self, provider: str, state: str, reason: str | None = None
    ) -> PendingAuthorization:
        """Discard a handshake the provider ended without a code.

        Args:
            provider: Provider key from the callback URL
            state: State parameter from the callback
            reason: The provider's ``error`` value, e.g. ``access_denied``

        Returns:
            The pending authorization, so the caller can redirect back

        Raises:
            InvalidAuthorizationError: If the state is unknown or was issued
                for another provider
        """
        pending = self._take_pending(provider, state)
        logfire.warn(
            "Authorization denied by provider",
            provider=provider,
            method=pending.method.value,
            reason=reason,
        )
        return pending

    def _take_pending(self, provider: str, state: str) -> PendingAuthorization:
        pending = self.state_store.pop(state)
        if pending is None:
            logfire.warn("Unknown authorization state", provider=provider)
            raise InvalidAuthorizationError("Unknown or expired authorization state")

        if pending.provider != provider:
            raise InvalidAuthorizationError(
                f"State was issued for {pending.provider}, not {provider}"
            )
        return pending
