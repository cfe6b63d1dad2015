"""Tests for endpoint parsing and storage construction."""

from __future__ import annotations

import os
import sqlite3

import pytest

from certstore import StorageProtocol
from certstore.config import CertStoreConfig
from certstore.errors import BackendError, InvalidConfigError
from certstore.storage import connect, open_storage, parse_storage_target


def test_parse_storage_target_plain_path() -> None:
    target = parse_storage_target("certs.db")
    assert target.backend == "sqlite"
    assert target.db_path == "certs.db"
    assert target.uri == f"sqlite:///{os.path.abspath('certs.db')}"


def test_parse_storage_target_sqlite_uri() -> None:
    target = parse_storage_target("sqlite:///tmp/example.db")
    assert target.backend == "sqlite"
    assert target.db_path == "/tmp/example.db"


def test_parse_storage_target_absolute_uri() -> None:
    target = parse_storage_target("sqlite:////var/lib/certs.db")
    assert target.db_path == "/var/lib/certs.db"


@pytest.mark.parametrize("endpoint", ["", "   ", "sqlite://", "sqlite:///:memory:", ":memory:"])
def test_parse_storage_target_rejects(endpoint) -> None:
    with pytest.raises(InvalidConfigError):
        parse_storage_target(endpoint)


def test_parse_storage_target_unsupported_scheme() -> None:
    with pytest.raises(InvalidConfigError, match="Unsupported backend 'postgres'"):
        parse_storage_target("postgres://user@localhost/certs")


def test_connect_creates_tables(tmp_path) -> None:
    db_path = str(tmp_path / "certs.db")
    s = connect(db_path)
    try:
        assert isinstance(s, StorageProtocol)
    finally:
        s.close()

    conn = sqlite3.connect(db_path)
    try:
        tables = {
            row[0]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
        journal_mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    finally:
        conn.close()
    assert {"certstore_data", "certstore_locks"} <= tables
    assert journal_mode == "wal"


def test_connect_with_uri(tmp_path) -> None:
    db_path = str(tmp_path / "certs.db")
    s = connect(f"sqlite:///{db_path}", query_timeout="1s", lock_timeout="30s")
    try:
        s.put("abc", b"value")
        info = s.storage_info()
        assert info["db_path"] == db_path
        assert info["query_timeout"] == 1.0
        assert info["lock_timeout"] == 30.0
    finally:
        s.close()


def test_connect_invalid_duration(tmp_path) -> None:
    with pytest.raises(InvalidConfigError, match="query timeout"):
        connect(str(tmp_path / "certs.db"), query_timeout="3 seconds")
    assert not os.path.exists(tmp_path / "certs.db")


def test_connect_rejects_unrepresentable_lock_timeout(tmp_path) -> None:
    with pytest.raises(InvalidConfigError, match="lock timeout"):
        connect(str(tmp_path / "certs.db"), lock_timeout=1e12)


def test_connect_empty_endpoint() -> None:
    with pytest.raises(InvalidConfigError):
        connect("")


def test_connect_unreachable_backend(tmp_path) -> None:
    with pytest.raises(BackendError) as exc_info:
        connect(str(tmp_path / "missing-dir" / "certs.db"))
    assert exc_info.value.operation == "connect"
    assert exc_info.value.cause is not None


def test_connect_without_tables(tmp_path) -> None:
    db_path = str(tmp_path / "bare.db")
    s = connect(db_path, create_tables=False)
    try:
        with pytest.raises(BackendError):
            s.get("abc")
    finally:
        s.close()


def test_open_storage_skips_probe(tmp_path) -> None:
    cfg = CertStoreConfig(endpoint=str(tmp_path / "missing-dir" / "certs.db"))
    s = open_storage(cfg)
    try:
        with pytest.raises(BackendError):
            s.put("abc", b"value")
    finally:
        s.close()


def test_independent_instances(tmp_path) -> None:
    a = connect(str(tmp_path / "a.db"))
    b = connect(str(tmp_path / "b.db"))
    try:
        a.put("abc", b"from-a")
        a.acquire("abc")
        assert b.exists("abc") is False
        b.acquire("abc")
    finally:
        a.close()
        b.close()
