"""Test configuration and fixtures."""

import logfire
import pytest

from fedauth.domain.value import ExternalProfile

# Local-only logfire so spans and events are exercised without exporting
logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def github_profile() -> ExternalProfile:
    """A complete profile as returned by a provider."""
    return ExternalProfile(
        provider="github",
        external_id="gh-42",
        display_name="Alice Example",
        email="alice@example.com",
        email_verified="alice@example.com",
        photo_url="https://example.com/alice.png",
        profile_url="https://github.com/alice",
    )
