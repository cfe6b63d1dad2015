"""Tests for the pooled SQLite connections."""

from __future__ import annotations

import sqlite3
import time

import pytest

from certstore.errors import BackendError, QueryTimeoutError
from certstore.pool import ConnectionPool


@pytest.fixture
def pool(tmp_db):
    p = ConnectionPool(tmp_db, size=1, timeout=0.2)
    yield p
    p.close()


def test_connections_are_autocommit(pool):
    with pool.connection("check", 1.0) as conn:
        assert isinstance(conn, sqlite3.Connection)
        assert conn.isolation_level is None


def test_connection_is_reused(pool):
    with pool.connection("first", 1.0) as conn:
        first = conn
    with pool.connection("second", 1.0) as conn:
        assert conn is first


def test_open_transaction_rolled_back_on_return(pool):
    with pool.connection("setup", 1.0) as conn:
        conn.execute("CREATE TABLE t (x INTEGER)")

    with pool.connection("write", 1.0) as conn:
        conn.execute("BEGIN IMMEDIATE")
        conn.execute("INSERT INTO t VALUES (1)")

    with pool.connection("read", 1.0) as conn:
        assert not conn.in_transaction
        assert conn.execute("SELECT count(*) FROM t").fetchone()[0] == 0


def test_waiting_for_free_connection_times_out(pool):
    with pool.connection("hold", 5.0):
        started = time.monotonic()
        with pytest.raises(QueryTimeoutError) as exc_info:
            with pool.connection("wait", 5.0):
                pass
        assert time.monotonic() - started < 2.0
    assert exc_info.value.operation == "wait"

    with pool.connection("after", 1.0):
        pass


def test_long_statement_is_interrupted(pool):
    with pool.connection("slow", 0.1) as conn:
        with pytest.raises(sqlite3.OperationalError, match="interrupted"):
            conn.execute(
                "WITH RECURSIVE c(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM c) "
                "SELECT count(*) FROM c"
            ).fetchone()


def test_checkout_after_close(pool):
    pool.close()
    assert pool.closed
    with pytest.raises(BackendError, match="closed"):
        with pool.connection("late", 1.0):
            pass


def test_unreachable_database(tmp_path):
    p = ConnectionPool(str(tmp_path / "missing-dir" / "x.db"), size=1, timeout=0.2)
    with pytest.raises(BackendError) as exc_info:
        with p.connection("connect", 1.0):
            pass
    assert exc_info.value.operation == "connect"
    assert isinstance(exc_info.value.cause, sqlite3.Error)
