"""
Domain exceptions - Semantic error types for waitlist registration.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
"""

from enum import Enum


class ValidationReason(str, Enum):
    """Machine-readable reason a submission failed validation."""

    MISSING_EMAIL = "missing_email"
    INVALID_EMAIL = "invalid_email"
    INVALID_INPUT = "invalid_input"


class WaitlistError(Exception):
    """Base class for waitlist domain errors."""

    pass


class ValidationError(WaitlistError):
    """Submission fields are malformed or missing (client's fault)."""

    def __init__(self, reason: ValidationReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message


class RateLimitError(WaitlistError):
    """Too many submission attempts from one source address."""

    def __init__(self, retry_after: float) -> None:
        super().__init__(f"Too many submissions, retry after {retry_after:.0f}s")
        self.retry_after = retry_after


class StorageUnavailable(WaitlistError):
    """The durable registry failed; nothing was committed."""

    pass


class NotificationFailure(WaitlistError):
    """A notification could not be delivered after all retries.

    Never surfaced to registration callers - only recorded in logs.
    """

    pass
