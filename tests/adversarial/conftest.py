"""
Shared fixtures for adversarial tests.

Every registry implementation must survive the same concurrency attacks,
so the registry fixture is parametrized over all adapters.
"""

import pytest

from src.adapters.repository.memory import InMemoryWaitlistRegistry
from src.adapters.repository.postgres import PostgresWaitlistRegistry

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


@pytest.fixture(params=["memory", "postgres"])
def any_registry(request: pytest.FixtureRequest):
    """Registry under attack - in-memory, and Postgres when reachable."""
    if request.param == "memory":
        return InMemoryWaitlistRegistry()
    pool = request.getfixturevalue("clean_postgres")
    return PostgresWaitlistRegistry(pool)
