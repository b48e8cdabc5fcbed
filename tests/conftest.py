"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory registry, limiter and dispatcher wiring
- Recording and flaky notification senders
- Submission request factories
- PostgreSQL pool (tests skip when the database is unreachable)
"""

import threading
from collections.abc import Generator
from typing import Any

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.memory import InMemoryWaitlistRegistry
from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings
from src.domain.limiter import AdmissionLimiter
from src.domain.models import SubmissionRequest
from src.domain.notifications import NotificationDispatcher
from src.domain.ports import TemplateKind
from src.domain.registration import RegistrationCoordinator


class RecordingSender:
    """NotificationSender that records every call and fails the first N per kind."""

    def __init__(self, failures_per_kind: int = 0) -> None:
        self.failures_per_kind = failures_per_kind
        self.calls: list[tuple[str, TemplateKind, dict[str, Any]]] = []
        self._attempts: dict[TemplateKind, int] = {}
        self._lock = threading.Lock()

    def send(self, recipient: str, template_kind: TemplateKind, parameters: dict[str, Any]) -> bool:
        with self._lock:
            self.calls.append((recipient, template_kind, parameters))
            self._attempts[template_kind] = self._attempts.get(template_kind, 0) + 1
            return self._attempts[template_kind] > self.failures_per_kind

    def calls_for(self, template_kind: TemplateKind) -> list[tuple[str, TemplateKind, dict]]:
        with self._lock:
            return [c for c in self.calls if c[1] == template_kind]


def make_request(
    email: str | None = "user@example.com",
    source_address: str = "203.0.113.10",
    **fields: Any,
) -> SubmissionRequest:
    """Build a SubmissionRequest with sensible defaults."""
    return SubmissionRequest(
        email=email,
        source_address=source_address,
        client_agent=fields.pop("client_agent", "pytest"),
        **fields,
    )


@pytest.fixture
def registry() -> InMemoryWaitlistRegistry:
    return InMemoryWaitlistRegistry()


@pytest.fixture
def limiter() -> AdmissionLimiter:
    return AdmissionLimiter(max_attempts=5, window_seconds=900)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def sleeps() -> list[float]:
    """Backoff delays requested by the dispatcher (no real sleeping)."""
    return []


@pytest.fixture
def dispatcher(
    sender: RecordingSender, sleeps: list[float]
) -> Generator[NotificationDispatcher, None, None]:
    dispatcher = NotificationDispatcher(
        sender=sender,
        admin_email="admin@example.com",
        sleep=sleeps.append,
    )
    yield dispatcher
    dispatcher.shutdown(wait=True)


@pytest.fixture
def coordinator(
    registry: InMemoryWaitlistRegistry,
    limiter: AdmissionLimiter,
    dispatcher: NotificationDispatcher,
) -> RegistrationCoordinator:
    return RegistrationCoordinator(registry=registry, limiter=limiter, dispatcher=dispatcher)


@pytest.fixture(scope="session")
def postgres_pool() -> Generator[ConnectionPool, None, None]:
    """
    Connection pool against DATABASE_URL, with migrations applied.

    Skips dependent tests when PostgreSQL is not reachable.
    """
    settings = get_settings()
    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=20, open=True)
    try:
        pool.wait(timeout=3.0)
    except PoolTimeout:
        pool.close()
        pytest.skip(f"PostgreSQL not reachable at {settings.database_url}")

    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_postgres(postgres_pool: ConnectionPool) -> ConnectionPool:
    """Empty the waitlist table before a test."""
    with postgres_pool.connection() as conn:
        conn.execute("TRUNCATE waitlist_entries")
    return postgres_pool
