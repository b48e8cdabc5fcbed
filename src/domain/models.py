"""
Domain models - Waitlist entries, submissions and registration outcomes.

Plain dataclasses with no framework imports. Entries are frozen: once
the registry creates one, nothing in the domain mutates it.
"""

from dataclasses import dataclass, field
from datetime import datetime

from .ports import RegistrationState


@dataclass(frozen=True)
class SubmissionRequest:
    """Raw submission as received from the transport layer."""

    email: str | None
    source_address: str
    client_agent: str
    twitter: str | None = None
    telegram: str | None = None
    discord: str | None = None
    referral_code: str | None = None


@dataclass(frozen=True)
class NormalizedSubmission:
    """Submission after field-level cleanup, ready for identity comparison."""

    email: str
    twitter: str = ""
    telegram: str = ""
    discord: str = ""
    referral_code: str = ""


@dataclass(frozen=True)
class NewEntry:
    """Everything the registry needs to create an entry except its position."""

    email: str
    twitter: str
    telegram: str
    discord: str
    referral_code: str
    source_address: str
    client_agent: str


@dataclass(frozen=True)
class WaitlistEntry:
    """Persisted waitlist entry, owned by the registry."""

    email: str
    position: int
    joined_at: datetime
    twitter: str = ""
    telegram: str = ""
    discord: str = ""
    referral_code: str = ""
    source_address: str = ""
    client_agent: str = ""


@dataclass(frozen=True)
class InsertResult:
    """
    Result of WaitlistRegistry.insert_if_absent().

    created is True when this call created the entry; otherwise entry
    is the one that already held the email.
    """

    created: bool
    entry: WaitlistEntry


@dataclass(frozen=True)
class Admission:
    """Result of an admission check - retry_after is 0 when admitted."""

    admitted: bool
    retry_after: float = 0.0


@dataclass(frozen=True)
class RegistrationResult:
    """
    Outcome of one submission through the coordinator.

    Exactly one of the following shapes is populated, by state:
    - DONE: entry holds the created entry
    - REJECTED_DUPLICATE: existing_position holds the earlier position
    - REJECTED_VALIDATION / REJECTED_RATE_LIMIT / REJECTED_INTERNAL:
      kind and message describe the rejection; retry_after is set
      for rate limits only
    """

    state: RegistrationState
    entry: WaitlistEntry | None = None
    existing_position: int | None = None
    kind: str | None = None
    message: str | None = None
    retry_after: float | None = None

    @property
    def registered(self) -> bool:
        return self.state == RegistrationState.DONE

    @property
    def duplicate(self) -> bool:
        return self.state == RegistrationState.REJECTED_DUPLICATE


@dataclass(frozen=True)
class WaitlistStats:
    """Total count plus the most recent entries."""

    total: int
    recent: list[WaitlistEntry] = field(default_factory=list)
