"""
Identity normalizer - Field-level cleanup and validation of submissions.

Pure functions: no I/O, no shared state. Normalizing an already
normalized submission returns the same values.
"""

from email_validator import EmailNotValidError, validate_email

from .exceptions import ValidationError, ValidationReason
from .models import NormalizedSubmission, SubmissionRequest


def normalize(request: SubmissionRequest) -> NormalizedSubmission:
    """
    Canonicalize and validate a raw submission.

    Raises:
        ValidationError: Email missing or not a valid address
    """
    email = normalize_email(request.email)

    return NormalizedSubmission(
        email=email,
        twitter=normalize_handle(request.twitter),
        telegram=normalize_handle(request.telegram),
        discord=_trim(request.discord),
        referral_code=_trim(request.referral_code).upper(),
    )


def normalize_email(email: str | None) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase, then grammar check.
    """
    cleaned = _trim(email).lower()
    if not cleaned:
        raise ValidationError(ValidationReason.MISSING_EMAIL, "Email is required")

    try:
        validate_email(cleaned, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError(
            ValidationReason.INVALID_EMAIL, "Please provide a valid email address"
        ) from None

    return cleaned


def normalize_handle(handle: str | None) -> str:
    """Trim a social handle and prefix '@' unless it already starts with one."""
    cleaned = _trim(handle)
    if not cleaned:
        return ""
    if cleaned.startswith("@"):
        return cleaned
    return f"@{cleaned.replace('@', '', 1)}"


def _trim(value: str | None) -> str:
    return value.strip() if value else ""
