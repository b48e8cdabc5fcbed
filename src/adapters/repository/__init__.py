"""Repository adapters - Registry implementations."""

from .memory import InMemoryWaitlistRegistry
from .postgres import PostgresWaitlistRegistry, run_migrations

__all__ = ["InMemoryWaitlistRegistry", "PostgresWaitlistRegistry", "run_migrations"]
