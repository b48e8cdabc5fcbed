"""
PostgreSQL repository adapter - Implements WaitlistRegistry protocol.

This module provides the PostgreSQL implementation of the domain's
registry port using psycopg3 with raw SQL.

Concurrency Design - Gap-Free Positions:
---------------------------------------
Position is defined as "number of existing entries + 1". Reading the
count and writing the row must therefore be one serialized step, or two
concurrent inserts would read the same count:

1. **LOCK TABLE ... IN EXCLUSIVE MODE**: Taken at the start of the insert
   transaction. Serializes all writers while still letting plain SELECTs
   (stats, lookups) proceed. Released on commit or rollback.

2. **INSERT ... SELECT COUNT(*) + 1 ... ON CONFLICT (email) DO NOTHING**:
   Existence check, count and write in a single statement. RETURNING is
   empty when the email already exists; the existing row is then read
   inside the same transaction.

3. **UNIQUE (email), UNIQUE (position)**: Constraints as a backstop - a
   broken lock would surface as an error, never as a duplicate.

Any psycopg error rolls the transaction back and is raised as the
domain's StorageUnavailable, so no partial entry is ever committed.
"""

import logging
from pathlib import Path

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.domain.exceptions import StorageUnavailable
from src.domain.models import InsertResult, NewEntry, WaitlistEntry

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = """
    email, position, joined_at, twitter, telegram, discord,
    referral_code, source_address, client_agent
"""


def _row_to_entry(row: dict) -> WaitlistEntry:
    return WaitlistEntry(
        email=row["email"],
        position=row["position"],
        joined_at=row["joined_at"],
        twitter=row["twitter"],
        telegram=row["telegram"],
        discord=row["discord"],
        referral_code=row["referral_code"],
        source_address=row["source_address"],
        client_agent=row["client_agent"],
    )


class PostgresWaitlistRegistry:
    """
    Implements WaitlistRegistry protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize registry with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def insert_if_absent(self, entry: NewEntry) -> InsertResult:
        """
        Atomically insert an entry with the next position.

        Args:
            entry: Normalized entry fields

        Returns:
            InsertResult(created=True, ...) for a new entry, or
            InsertResult(created=False, ...) carrying the existing entry

        Raises:
            StorageUnavailable: Database error; transaction rolled back
        """
        lock_sql = "LOCK TABLE waitlist_entries IN EXCLUSIVE MODE"

        insert_sql = f"""
            INSERT INTO waitlist_entries (
                email, position, twitter, telegram, discord,
                referral_code, source_address, client_agent, joined_at
            )
            SELECT %s, COUNT(*) + 1, %s, %s, %s, %s, %s, %s, clock_timestamp()
            FROM waitlist_entries
            ON CONFLICT (email) DO NOTHING
            RETURNING {_ENTRY_COLUMNS}
        """

        select_sql = f"SELECT {_ENTRY_COLUMNS} FROM waitlist_entries WHERE email = %s"

        try:
            with self._pool.connection() as conn:
                with conn.transaction(), conn.cursor(row_factory=dict_row) as cursor:
                    cursor.execute(lock_sql)
                    cursor.execute(
                        insert_sql,
                        (
                            entry.email,
                            entry.twitter,
                            entry.telegram,
                            entry.discord,
                            entry.referral_code,
                            entry.source_address,
                            entry.client_agent,
                        ),
                    )
                    row = cursor.fetchone()
                    if row is not None:
                        return InsertResult(created=True, entry=_row_to_entry(row))

                    cursor.execute(select_sql, (entry.email,))
                    existing = cursor.fetchone()
        except psycopg.Error as e:
            raise StorageUnavailable(f"Insert failed for {entry.email}") from e

        if existing is None:
            # Conflict on email but no row: only possible if the lock was bypassed
            raise StorageUnavailable(f"Entry for {entry.email} vanished after conflict")
        return InsertResult(created=False, entry=_row_to_entry(existing))

    def lookup_by_email(self, email: str) -> WaitlistEntry | None:
        sql = f"SELECT {_ENTRY_COLUMNS} FROM waitlist_entries WHERE email = %s"
        row = self._fetch(sql, (email,), one=True)
        return _row_to_entry(row) if row is not None else None

    def list_recent(self, limit: int) -> list[WaitlistEntry]:
        sql = f"""
            SELECT {_ENTRY_COLUMNS} FROM waitlist_entries
            ORDER BY joined_at DESC, position DESC
            LIMIT %s
        """
        return [_row_to_entry(row) for row in self._fetch(sql, (limit,))]

    def count_all(self) -> int:
        row = self._fetch("SELECT COUNT(*) AS total FROM waitlist_entries", (), one=True)
        return row["total"]

    def _fetch(self, sql: str, params: tuple, one: bool = False):
        try:
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql, params)
                return cursor.fetchone() if one else cursor.fetchall()
        except psycopg.Error as e:
            raise StorageUnavailable("Registry read failed") from e


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
