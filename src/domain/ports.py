"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .models import InsertResult, NewEntry, WaitlistEntry


class RegistrationState(str, Enum):
    """
    Per-submission states of the registration coordinator.

    Happy path (forward-only):
        RECEIVED -> NORMALIZED -> ADMITTED -> REGISTERED
                 -> NOTIFICATION_SCHEDULED -> DONE

    Terminal rejections:
    - REJECTED_VALIDATION: malformed or missing fields (from RECEIVED)
    - REJECTED_RATE_LIMIT: source address over its window (from NORMALIZED)
    - REJECTED_DUPLICATE: email already on the waitlist (from ADMITTED)
    - REJECTED_INTERNAL: storage failure, nothing committed (from ADMITTED)

    REJECTED_DUPLICATE is not an error for callers: the existing
    position is returned as an idempotent answer.
    """

    RECEIVED = "received"
    NORMALIZED = "normalized"
    ADMITTED = "admitted"
    REGISTERED = "registered"
    NOTIFICATION_SCHEDULED = "notification_scheduled"
    DONE = "done"
    REJECTED_VALIDATION = "rejected_validation"
    REJECTED_RATE_LIMIT = "rejected_rate_limit"
    REJECTED_DUPLICATE = "rejected_duplicate"
    REJECTED_INTERNAL = "rejected_internal"


class TemplateKind(str, Enum):
    """Notification templates the transport must understand."""

    ADMIN_ALERT = "admin_alert"
    WELCOME = "welcome"


class WaitlistRegistry(Protocol):
    """Port interface for waitlist persistence."""

    def insert_if_absent(self, entry: NewEntry) -> InsertResult:
        """
        Atomically insert an entry unless its email already exists.

        The existence check and position assignment must be linearizable
        with every other registry operation: position is the count of
        existing entries plus one, computed and written in one atomic
        step. Concurrent inserts for distinct emails get distinct,
        gap-free positions; concurrent inserts for the same email yield
        exactly one created entry.

        Args:
            entry: Normalized entry fields (everything but position)

        Returns:
            InsertResult with created=True and the new entry, or
            created=False and the existing entry for that email

        Raises:
            StorageUnavailable: The store failed; nothing was committed
        """
        ...

    def lookup_by_email(self, email: str) -> WaitlistEntry | None:
        """Return the entry for a normalized email, or None."""
        ...

    def list_recent(self, limit: int) -> list[WaitlistEntry]:
        """Return up to `limit` entries, newest joined_at first."""
        ...

    def count_all(self) -> int:
        """Return the total number of entries."""
        ...


class NotificationSender(Protocol):
    """Port interface for notification delivery."""

    def send(self, recipient: str, template_kind: TemplateKind, parameters: dict[str, Any]) -> bool:
        """
        Deliver one templated message.

        Args:
            recipient: Destination email address
            template_kind: Which template to render
            parameters: Template parameters

        Returns:
            True if the transport accepted the message, False otherwise
        """
        ...
