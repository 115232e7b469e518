"""Unit tests for ExternalProfile and related value helpers."""

import re

import pytest
from pydantic import ValidationError

from fedauth.domain.value import (
    ALLOW_METHODS,
    AuthMethod,
    ExternalProfile,
    first_present,
    unique_token,
)


class TestLinkDisplayName:
    """Tests for the identity link display name fallback chain."""

    def test_prefers_display_name(self):
        profile = ExternalProfile(
            provider="github",
            external_id="id1",
            display_name="Alice",
            email="e@x.com",
            email_verified="v@x.com",
        )

        assert profile.link_display_name == "Alice"

    def test_verified_email_before_plain_email(self):
        """Verified email wins over email when there is no display name."""
        profile = ExternalProfile(
            provider="github",
            external_id="id1",
            display_name=None,
            email="e@x.com",
            email_verified="v@x.com",
        )

        assert profile.link_display_name == "v@x.com"

    def test_plain_email_when_unverified(self):
        profile = ExternalProfile(provider="github", external_id="id1", email="e@x.com")

        assert profile.link_display_name == "e@x.com"

    def test_external_id_terminates_chain(self):
        profile = ExternalProfile(provider="github", external_id="id1")

        assert profile.link_display_name == "id1"

    def test_empty_display_name_counts_as_present(self):
        """Only missing values fall through."""
        profile = ExternalProfile(
            provider="github", external_id="id1", display_name="", email="e@x.com"
        )

        assert profile.link_display_name == ""


class TestUserDisplayName:
    """Tests for the display name given to newly registered users."""

    def test_uses_display_name(self):
        profile = ExternalProfile(
            provider="github", external_id="id1", display_name="Alice"
        )

        assert profile.user_display_name == "Alice"

    def test_generates_placeholder_without_display_name(self):
        """Never falls back to email for the user's name."""
        profile = ExternalProfile(
            provider="github", external_id="id1", email_verified="v@x.com"
        )

        name = profile.user_display_name

        assert re.fullmatch(r"github[0-9a-f]{16}", name)


class TestHelpers:
    """Tests for first_present, unique_token and AuthMethod."""

    def test_first_present_skips_none(self):
        assert first_present(None, None, "c", default="d") == "c"

    def test_first_present_returns_default(self):
        assert first_present(None, None, default="d") == "d"

    def test_unique_token_is_random(self):
        assert unique_token("user") != unique_token("user")
        assert unique_token("user").startswith("user")

    def test_allow_methods(self):
        assert ALLOW_METHODS == ("auth", "attach")
        assert AuthMethod("attach") is AuthMethod.ATTACH

    def test_profile_is_immutable(self):
        profile = ExternalProfile(provider="github", external_id="id1")

        with pytest.raises(ValidationError):
            profile.external_id = "id2"
