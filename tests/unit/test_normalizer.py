"""
Unit tests for the identity normalizer.

Tests verify:
- Email trimming, lowercasing and grammar validation
- Social handle "@" prefixing without doubling
- Referral code upper-casing
- Missing optional fields normalize to empty strings
- Idempotence on already-normalized values
"""

import pytest

from src.domain.exceptions import ValidationError, ValidationReason
from src.domain.models import NormalizedSubmission
from src.domain.normalizer import normalize, normalize_email, normalize_handle
from tests.conftest import make_request


class TestEmailNormalization:
    """Tests for email normalization and validation."""

    def test_email_lowercased(self) -> None:
        """Mixed-case email becomes lowercase."""
        assert normalize(make_request("Foo@Bar.com")).email == "foo@bar.com"

    def test_email_whitespace_stripped(self) -> None:
        """Surrounding whitespace is removed."""
        assert normalize(make_request("  user@example.com  ")).email == "user@example.com"

    def test_email_combined(self) -> None:
        """Strip and lowercase apply together."""
        assert normalize(make_request("  User@Example.COM ")).email == "user@example.com"

    def test_plus_addressing_allowed(self) -> None:
        """Plus-tagged addresses are valid."""
        assert normalize(make_request("user+tag@example.com")).email == "user+tag@example.com"

    @pytest.mark.parametrize("email", ["invalid-email", "user@", "@example.com", "a b@example.com"])
    def test_invalid_email_rejected(self, email: str) -> None:
        """Malformed emails raise ValidationError(INVALID_EMAIL)."""
        with pytest.raises(ValidationError) as exc_info:
            normalize(make_request(email))
        assert exc_info.value.reason == ValidationReason.INVALID_EMAIL

    @pytest.mark.parametrize("email", [None, "", "   "])
    def test_missing_email_rejected(self, email: str | None) -> None:
        """Missing or blank email raises ValidationError(MISSING_EMAIL)."""
        with pytest.raises(ValidationError) as exc_info:
            normalize(make_request(email))
        assert exc_info.value.reason == ValidationReason.MISSING_EMAIL

    def test_validation_error_has_message(self) -> None:
        """ValidationError carries a human-readable message."""
        with pytest.raises(ValidationError) as exc_info:
            normalize_email("not-an-email")
        assert exc_info.value.message == "Please provide a valid email address"


class TestHandleNormalization:
    """Tests for twitter/telegram handle normalization."""

    def test_prefix_added(self) -> None:
        """Handle without '@' gets one."""
        assert normalize(make_request(twitter="bob")).twitter == "@bob"

    def test_existing_prefix_kept(self) -> None:
        """Handle with '@' is not doubled."""
        assert normalize(make_request(twitter="@bob")).twitter == "@bob"

    def test_handle_trimmed(self) -> None:
        """Whitespace is trimmed before prefixing."""
        assert normalize(make_request(telegram="  alice ")).telegram == "@alice"

    def test_embedded_at_moved_to_front(self) -> None:
        """Without a leading '@', the first embedded '@' is dropped before prefixing."""
        assert normalize_handle("bo@b") == "@bob"

    @pytest.mark.parametrize("handle", ["@@bob", "@bo@b", "@"])
    def test_leading_at_left_unchanged(self, handle: str) -> None:
        """Handles already starting with '@' are kept as-is."""
        assert normalize_handle(handle) == handle
        assert normalize_handle(normalize_handle(handle)) == handle

    def test_discord_trimmed_without_prefix(self) -> None:
        """Discord is trimmed only - no '@' rule."""
        assert normalize(make_request(discord="  user#1234 ")).discord == "user#1234"


class TestOptionalFields:
    """Tests for referral code and missing optional fields."""

    def test_referral_code_uppercased(self) -> None:
        """Referral code is trimmed and upper-cased."""
        assert normalize(make_request(referral_code=" friend42 ")).referral_code == "FRIEND42"

    def test_missing_optionals_are_empty_strings(self) -> None:
        """Absent optional fields become '' rather than None."""
        result = normalize(make_request())
        assert result == NormalizedSubmission(email="user@example.com")
        assert result.twitter == ""
        assert result.telegram == ""
        assert result.discord == ""
        assert result.referral_code == ""


class TestIdempotence:
    """Normalizing a normalized record yields the same record."""

    def test_normalize_twice_is_stable(self) -> None:
        first = normalize(
            make_request(
                "  Someone@Example.com",
                twitter="bob",
                telegram="@carol",
                discord=" dave ",
                referral_code="abc",
            )
        )
        second = normalize(
            make_request(
                first.email,
                twitter=first.twitter,
                telegram=first.telegram,
                discord=first.discord,
                referral_code=first.referral_code,
            )
        )
        assert second == first
        assert second.twitter == "@bob"
