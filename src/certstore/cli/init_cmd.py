"""certstore init: create the storage tables."""

from __future__ import annotations

import typer

from certstore.cli import _exitcodes as ec
from certstore.cli._output import print_error, print_object
from certstore.cli._storage import open_store, resolve_endpoint
from certstore.errors import CertStoreError
from certstore.storage import parse_storage_target


def init_cmd(
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview initialization only"),
) -> None:
    """Initialize the selected storage backend. Safe to run repeatedly."""
    from certstore.cli import state

    json_mode = state.json_output
    try:
        target = parse_storage_target(resolve_endpoint())
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)

    if dry_run:
        data = {
            "backend": target.backend,
            "db_path": target.db_path,
            "tables": ["certstore_data", "certstore_locks"],
            "status": "dry_run",
        }
        print_object(data, json_mode=json_mode)
        return

    store = open_store(create_tables=True)
    try:
        info = store.storage_info()
    finally:
        store.close()

    data = {
        "backend": info["backend"],
        "db_path": info["db_path"],
        "tables": ["certstore_data", "certstore_locks"],
        "status": "initialized",
    }
    if json_mode:
        print_object(data, json_mode=True)
    else:
        print(f"Initialized: {target.uri}")
