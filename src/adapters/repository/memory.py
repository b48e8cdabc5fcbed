"""
In-memory repository adapter - Implements WaitlistRegistry protocol.

Process-local store for development and tests. A single lock
serializes every operation, which makes insert_if_absent linearizable
and keeps positions gap-free.
"""

import threading
from collections.abc import Callable
from datetime import UTC, datetime

from src.domain.models import InsertResult, NewEntry, WaitlistEntry


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InMemoryWaitlistRegistry:
    """
    Implements WaitlistRegistry protocol with a dict and a lock.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._entries: dict[str, WaitlistEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def insert_if_absent(self, entry: NewEntry) -> InsertResult:
        with self._lock:
            existing = self._entries.get(entry.email)
            if existing is not None:
                return InsertResult(created=False, entry=existing)

            created = WaitlistEntry(
                email=entry.email,
                position=len(self._entries) + 1,
                joined_at=self._clock(),
                twitter=entry.twitter,
                telegram=entry.telegram,
                discord=entry.discord,
                referral_code=entry.referral_code,
                source_address=entry.source_address,
                client_agent=entry.client_agent,
            )
            self._entries[entry.email] = created
            return InsertResult(created=True, entry=created)

    def lookup_by_email(self, email: str) -> WaitlistEntry | None:
        with self._lock:
            return self._entries.get(email)

    def list_recent(self, limit: int) -> list[WaitlistEntry]:
        with self._lock:
            entries = list(self._entries.values())
        # Position breaks ties between identical timestamps
        entries.sort(key=lambda e: (e.joined_at, e.position), reverse=True)
        return entries[:limit]

    def count_all(self) -> int:
        with self._lock:
            return len(self._entries)
