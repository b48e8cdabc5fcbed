"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for waitlist registration:
identity normalization, admission limiting, the registration state
machine and notification dispatch. It defines its own port interfaces
for infrastructure abstraction.
"""

from .exceptions import (
    NotificationFailure,
    RateLimitError,
    StorageUnavailable,
    ValidationError,
    ValidationReason,
    WaitlistError,
)
from .limiter import AdmissionLimiter
from .models import (
    Admission,
    InsertResult,
    NewEntry,
    NormalizedSubmission,
    RegistrationResult,
    SubmissionRequest,
    WaitlistEntry,
    WaitlistStats,
)
from .notifications import NotificationDispatcher
from .ports import NotificationSender, RegistrationState, TemplateKind, WaitlistRegistry
from .registration import RegistrationCoordinator

__all__ = [
    "Admission",
    "AdmissionLimiter",
    "InsertResult",
    "NewEntry",
    "NormalizedSubmission",
    "NotificationDispatcher",
    "NotificationFailure",
    "NotificationSender",
    "RateLimitError",
    "RegistrationCoordinator",
    "RegistrationResult",
    "RegistrationState",
    "StorageUnavailable",
    "SubmissionRequest",
    "TemplateKind",
    "ValidationError",
    "ValidationReason",
    "WaitlistEntry",
    "WaitlistError",
    "WaitlistRegistry",
    "WaitlistStats",
]
