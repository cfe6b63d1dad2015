"""Shared test fixtures for certstore tests."""

from __future__ import annotations

import pytest

from certstore.storage import connect


@pytest.fixture
def tmp_db(tmp_path):
    """Create a temporary SQLite database path."""
    return str(tmp_path / "test.db")


@pytest.fixture
def store_factory(tmp_db):
    """Open independent storage instances on the shared temporary database."""
    opened = []

    def _open(**options):
        s = connect(tmp_db, **options)
        opened.append(s)
        return s

    yield _open
    for s in opened:
        s.close()


@pytest.fixture
def store(store_factory):
    """Create a storage instance with a temporary database."""
    return store_factory()
