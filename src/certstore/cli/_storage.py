"""CLI helpers for opening storage from the global options."""

from __future__ import annotations

import os

import typer

from certstore.cli import _exitcodes as ec
from certstore.cli._output import print_error
from certstore.config import CertStoreConfig
from certstore.errors import (
    BackendError,
    CertStoreError,
    InvalidConfigError,
    LockedError,
    NotFoundError,
    UnsupportedError,
)
from certstore.storage import connect, parse_storage_target
from certstore.storage_sqlite import SqliteStorage


def resolve_endpoint() -> str:
    """Return the storage endpoint selected by --storage-uri or --db."""
    from certstore.cli import state

    return state.storage_uri or state.db


def open_store(*, create_tables: bool = True) -> SqliteStorage:
    """Connect to the selected backend, exiting with a database error on failure.

    With ``create_tables=False`` the database file must already exist, so read
    commands never create a store at a mistyped path.
    """
    from certstore.cli import state

    options = {
        "endpoint": resolve_endpoint(),
        "query_timeout": state.query_timeout,
        "lock_timeout": state.lock_timeout,
    }
    try:
        config = CertStoreConfig.from_options(options)
        target = parse_storage_target(config.endpoint)
    except InvalidConfigError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)

    if not create_tables and not os.path.exists(target.db_path):
        print_error(f"Cannot open storage backend: database not found: {target.db_path}")
        raise typer.Exit(ec.DATABASE_ERROR)

    try:
        return connect(
            config.endpoint,
            query_timeout=config.query_timeout,
            lock_timeout=config.lock_timeout,
            create_tables=create_tables,
        )
    except InvalidConfigError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    except CertStoreError as e:
        print_error(f"Cannot open storage backend: {e}")
        raise typer.Exit(ec.DATABASE_ERROR)


def exit_code_for(error: CertStoreError) -> int:
    """Map a store error onto the CLI exit code."""
    if isinstance(error, NotFoundError):
        return ec.NOT_FOUND
    if isinstance(error, LockedError):
        return ec.LOCKED
    if isinstance(error, (UnsupportedError, InvalidConfigError)):
        return ec.USAGE_ERROR
    if isinstance(error, BackendError):
        return ec.DATABASE_ERROR
    return ec.GENERAL_ERROR
