"""
Registration coordinator - Waitlist submission state machine.

This module contains the core business logic for joining the waitlist,
orchestrating normalizer, limiter, registry and notification dispatcher.

Submission State Machine (Forward-Only Transitions)
===================================================

    RECEIVED --normalize--> NORMALIZED            | REJECTED_VALIDATION
    NORMALIZED --admit----> ADMITTED              | REJECTED_RATE_LIMIT
    ADMITTED --insert-----> REGISTERED            | REJECTED_DUPLICATE
                                                  | REJECTED_INTERNAL
    REGISTERED --schedule-> NOTIFICATION_SCHEDULED --> DONE

Validation and rate-limit checks run before any registry access.
Notification delivery is scheduled but never awaited: the caller gets
its answer as soon as the registry write commits.

Note: Atomicity of the duplicate check and position assignment is the
registry's responsibility (see WaitlistRegistry.insert_if_absent).
"""

import logging
from dataclasses import dataclass

from . import normalizer
from .exceptions import RateLimitError, StorageUnavailable, ValidationError
from .limiter import AdmissionLimiter
from .models import NewEntry, RegistrationResult, SubmissionRequest, WaitlistEntry, WaitlistStats
from .notifications import NotificationDispatcher
from .ports import RegistrationState, WaitlistRegistry

logger = logging.getLogger(__name__)

RECENT_SUBMISSIONS_LIMIT = 10


@dataclass
class RegistrationCoordinator:
    """
    Domain service for waitlist registration.

    Owns the end-to-end state transition of each submission and maps
    every failure onto the rejection taxonomy. Safe to call from many
    threads at once: its collaborators carry their own synchronization.
    """

    registry: WaitlistRegistry
    limiter: AdmissionLimiter
    dispatcher: NotificationDispatcher

    def register(self, request: SubmissionRequest) -> RegistrationResult:
        """
        Run one submission through the state machine.

        Returns:
            RegistrationResult - never raises for expected failures
        """
        try:
            submission = normalizer.normalize(request)
        except ValidationError as e:
            logger.info("Rejected submission from %s: %s", request.source_address, e.message)
            return RegistrationResult(
                state=RegistrationState.REJECTED_VALIDATION,
                kind=e.reason.value,
                message=e.message,
            )

        try:
            self.limiter.check(request.source_address)
        except RateLimitError as e:
            logger.info(
                "Rate limited submission from %s (retry after %.0fs)",
                request.source_address,
                e.retry_after,
            )
            return RegistrationResult(
                state=RegistrationState.REJECTED_RATE_LIMIT,
                kind="rate_limited",
                message="Too many waitlist submissions from this address, please try again later.",
                retry_after=e.retry_after,
            )

        new_entry = NewEntry(
            email=submission.email,
            twitter=submission.twitter,
            telegram=submission.telegram,
            discord=submission.discord,
            referral_code=submission.referral_code,
            source_address=request.source_address,
            client_agent=request.client_agent,
        )

        try:
            inserted = self.registry.insert_if_absent(new_entry)
        except StorageUnavailable:
            logger.exception("Registry insert failed for %s", submission.email)
            return RegistrationResult(
                state=RegistrationState.REJECTED_INTERNAL,
                kind="internal_error",
                message="Failed to join waitlist. Please try again.",
            )

        if not inserted.created:
            logger.warning(
                "Duplicate submission for %s (position %d)",
                submission.email,
                inserted.entry.position,
            )
            return RegistrationResult(
                state=RegistrationState.REJECTED_DUPLICATE,
                existing_position=inserted.entry.position,
            )

        entry = inserted.entry
        logger.info("Registered %s at position %d", entry.email, entry.position)

        self.dispatcher.dispatch(entry)
        return RegistrationResult(state=RegistrationState.DONE, entry=entry)

    def stats(self) -> WaitlistStats:
        """
        Total count plus the most recent entries.

        Raises:
            StorageUnavailable: Registry read failed
        """
        return WaitlistStats(
            total=self.registry.count_all(),
            recent=self.registry.list_recent(RECENT_SUBMISSIONS_LIMIT),
        )

    def lookup(self, email: str) -> WaitlistEntry | None:
        """
        Find an entry by email (normalized before lookup).

        Returns None for unknown or malformed emails.

        Raises:
            StorageUnavailable: Registry read failed
        """
        try:
            normalized_email = normalizer.normalize_email(email)
        except ValidationError:
            return None
        return self.registry.lookup_by_email(normalized_email)
