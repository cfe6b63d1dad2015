"""SQLite-backed key-value store with lease locks."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator

from certstore.config import CertStoreConfig, parse_duration
from certstore.errors import (
    BackendError,
    CertStoreError,
    LockedError,
    NotFoundError,
    QueryTimeoutError,
    UnsupportedError,
)
from certstore.pool import ConnectionPool
from certstore.storage import parse_storage_target
from certstore.types import KeyInfo, LeaseInfo, parse_timestamp

logger = logging.getLogger(__name__)

# Current time on the backend clock, UTC with millisecond precision.
_NOW = "strftime('%Y-%m-%d %H:%M:%f', 'now')"

SCHEMA_SQL = f"""
    CREATE TABLE IF NOT EXISTS certstore_data (
        key TEXT PRIMARY KEY,
        value BLOB NOT NULL,
        modified TEXT NOT NULL DEFAULT ({_NOW})
    );

    CREATE TABLE IF NOT EXISTS certstore_locks (
        key TEXT PRIMARY KEY,
        expires TEXT NOT NULL DEFAULT ({_NOW})
    );
"""

_TIMEOUT_MESSAGES = ("interrupted", "database is locked", "database is busy")


def _translate_error(operation: str, timeout: float, exc: sqlite3.Error) -> BackendError:
    message = str(exc)
    if isinstance(exc, sqlite3.OperationalError) and any(
        m in message for m in _TIMEOUT_MESSAGES
    ):
        return QueryTimeoutError(operation, timeout, exc)
    return BackendError(operation, message, exc)


class SqliteStorage:
    """Key-value records and lease locks in one SQLite database file.

    Holds no state beyond the connection pool; every call is a round trip to
    the database and may be issued concurrently from any number of threads or
    processes sharing the file.
    """

    def __init__(self, config: CertStoreConfig) -> None:
        target = parse_storage_target(config.endpoint)
        self.config = config
        self.uri = target.uri
        self.db_path = target.db_path
        self._pool = ConnectionPool(
            self.db_path, size=config.pool_size, timeout=config.query_timeout
        )

    def __enter__(self) -> SqliteStorage:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @contextmanager
    def _operation(
        self, operation: str, timeout: float | None = None
    ) -> Iterator[sqlite3.Connection]:
        """Run one operation on a pooled connection under its deadline."""
        deadline = self.config.query_timeout if timeout is None else timeout
        try:
            with self._pool.connection(operation, deadline) as conn:
                yield conn
        except sqlite3.Error as e:
            raise _translate_error(operation, deadline, e) from e
        except (UnicodeEncodeError, OverflowError) as e:
            # Parameters the driver cannot bind, such as keys with lone surrogates.
            raise BackendError(operation, f"cannot bind parameter: {e}", e) from e

    def probe(self) -> None:
        """Check the database is reachable and create the tables."""
        with self._operation("connect", self.config.connect_timeout) as conn:
            conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
            if self.config.create_tables:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.executescript(SCHEMA_SQL)

    def close(self) -> None:
        if self._pool.closed:
            return
        self._pool.close()
        logger.info("Closed storage %s", self.uri)

    # --- Key-value records ---

    def put(self, key: str, value: bytes) -> None:
        with self._operation("put") as conn:
            conn.execute(
                "INSERT INTO certstore_data (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET "
                f"value = excluded.value, modified = {_NOW}",
                (key, bytes(value)),
            )

    def get(self, key: str) -> bytes:
        with self._operation("get") as conn:
            row = conn.execute(
                "SELECT value FROM certstore_data WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            raise NotFoundError(key)
        if not isinstance(row[0], bytes):
            raise BackendError("get", f"malformed value for key {key}")
        return row[0]

    def delete(self, key: str) -> None:
        with self._operation("delete") as conn:
            conn.execute("DELETE FROM certstore_data WHERE key = ?", (key,))

    def exists(self, key: str) -> bool:
        """Return True if the key exists and the check succeeded."""
        try:
            with self._operation("exists") as conn:
                row = conn.execute(
                    "SELECT EXISTS(SELECT 1 FROM certstore_data WHERE key = ?)",
                    (key,),
                ).fetchone()
        except CertStoreError as e:
            logger.debug("exists(%s) failed, reporting absent: %s", key, e)
            return False
        return bool(row[0])

    def list_keys(self, prefix: str, recursive: bool = False) -> list[str]:
        """Return keys starting with the literal ``prefix``, in ascending order."""
        if recursive:
            raise UnsupportedError("list", "recursive listing")
        with self._operation("list") as conn:
            rows = conn.execute(
                "SELECT key FROM certstore_data "
                "WHERE key >= ? "
                "AND substr(CAST(key AS BLOB), 1, length(CAST(? AS BLOB))) = CAST(? AS BLOB) "
                "ORDER BY key",
                (prefix, prefix, prefix),
            ).fetchall()
        return [row[0] for row in rows]

    def stat(self, key: str) -> KeyInfo:
        with self._operation("stat") as conn:
            row = conn.execute(
                "SELECT length(value), modified FROM certstore_data WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            raise NotFoundError(key)
        try:
            modified = parse_timestamp(row[1])
        except (TypeError, ValueError) as e:
            raise BackendError("stat", f"malformed timestamp for key {key}: {row[1]!r}", e) from e
        return KeyInfo(key=key, size=row[0], modified=modified)

    # --- Lease locks ---

    def acquire(
        self, key: str, lease: float | str | None = None, timeout: float | None = None
    ) -> None:
        """Take the lease on ``key`` or raise LockedError if it is held.

        Try-once: no waiting for the current holder. Expired rows are
        overwritten here, there is no other cleanup.
        """
        lease_seconds = (
            self.config.lock_timeout
            if lease is None
            else parse_duration(lease, name="lease duration")
        )
        with self._operation("acquire", timeout) as conn:
            # IMMEDIATE takes the write lock up front, serializing concurrent acquirers.
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute(
                    "SELECT EXISTS(SELECT 1 FROM certstore_locks "
                    f"WHERE key = ? AND expires > {_NOW})",
                    (key,),
                ).fetchone()
                if row[0]:
                    raise LockedError(key)
                conn.execute(
                    "INSERT INTO certstore_locks (key, expires) "
                    "VALUES (?, strftime('%Y-%m-%d %H:%M:%f', 'now', ?)) "
                    "ON CONFLICT(key) DO UPDATE SET expires = excluded.expires",
                    (key, f"+{lease_seconds:.3f} seconds"),
                )
                conn.commit()
            except Exception:
                if conn.in_transaction:
                    conn.rollback()
                raise
        logger.debug("Acquired lease on %s for %.3fs", key, lease_seconds)

    def release(self, key: str) -> None:
        """Delete the lease on ``key`` whoever holds it."""
        with self._operation("release") as conn:
            conn.execute("DELETE FROM certstore_locks WHERE key = ?", (key,))
        logger.debug("Released lease on %s", key)

    @contextmanager
    def locked(
        self, key: str, lease: float | str | None = None, timeout: float | None = None
    ) -> Iterator[SqliteStorage]:
        """Hold the lease on ``key`` for the duration of the block."""
        self.acquire(key, lease=lease, timeout=timeout)
        try:
            yield self
        finally:
            self.release(key)

    def list_locks(self) -> list[LeaseInfo]:
        """Return every lease row, flagged active or expired by the backend clock."""
        with self._operation("list_locks") as conn:
            rows = conn.execute(
                f"SELECT key, expires, expires > {_NOW} FROM certstore_locks ORDER BY key"
            ).fetchall()
        return [
            LeaseInfo(key=key, expires=parse_timestamp(expires), active=bool(active))
            for key, expires, active in rows
        ]

    def storage_info(self) -> dict[str, Any]:
        """Return backend info for operator commands."""
        return {
            "backend": "sqlite",
            "uri": self.uri,
            "db_path": self.db_path,
            "query_timeout": self.config.query_timeout,
            "lock_timeout": self.config.lock_timeout,
            "pool_size": self.config.pool_size,
        }


__all__ = ["SCHEMA_SQL", "SqliteStorage"]
