"""Bounded pool of SQLite connections shared by all storage operations."""

from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, exc
from sqlalchemy.pool import QueuePool

from certstore.errors import BackendError, QueryTimeoutError

logger = logging.getLogger(__name__)

# VM instructions between deadline checks.
_PROGRESS_STEPS = 1000


class ConnectionPool:
    """Hands out at most ``size`` connections to one database file.

    The pool is a SQLAlchemy ``QueuePool`` with no overflow. Callers get the
    raw ``sqlite3`` connection, opened in autocommit mode, and issue
    ``BEGIN IMMEDIATE`` themselves when they need a write transaction.
    Waiting for a free connection is bounded by ``timeout``. Once a connection
    is out, waiting on another writer (busy timeout) and running statements
    (progress handler) stop when the operation deadline passes.
    """

    def __init__(self, db_path: str, *, size: int, timeout: float) -> None:
        self.db_path = db_path
        self.size = size
        self.timeout = timeout
        self._closed = False
        self._engine = create_engine(
            f"sqlite:///{db_path}",
            poolclass=QueuePool,
            pool_size=size,
            max_overflow=0,
            pool_timeout=timeout,
            pool_reset_on_return="rollback",
            connect_args={
                "check_same_thread": False,
                "isolation_level": None,
                "timeout": 0,
            },
        )

    def _checkout(self, operation: str):
        if self._closed:
            raise BackendError(operation, "connection pool is closed")
        try:
            return self._engine.raw_connection()
        except exc.TimeoutError:
            raise QueryTimeoutError(operation, self.timeout) from None
        except exc.DBAPIError as e:
            raise BackendError(operation, f"cannot open database: {e.orig}", e.orig) from e

    def _checkin(self, fairy) -> None:
        conn = fairy.driver_connection
        conn.set_progress_handler(None, 0)
        if conn.in_transaction:
            logger.warning("Connection returned with an open transaction; rolling back")
        if self._closed:
            fairy.invalidate()
        else:
            fairy.close()

    @contextmanager
    def connection(self, operation: str, timeout: float) -> Iterator[sqlite3.Connection]:
        """Borrow a connection whose work must finish within ``timeout`` seconds."""
        deadline = time.monotonic() + timeout
        fairy = self._checkout(operation)
        try:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise QueryTimeoutError(operation, timeout)
            conn = fairy.driver_connection
            conn.execute(f"PRAGMA busy_timeout = {max(int(remaining * 1000), 1)}")
            conn.set_progress_handler(lambda: time.monotonic() > deadline, _PROGRESS_STEPS)
            yield conn
        finally:
            self._checkin(fairy)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Close idle connections now and in-use ones as they are returned."""
        self._closed = True
        try:
            self._engine.dispose()
        except exc.SQLAlchemyError as e:
            raise BackendError("close", str(e), e) from e
