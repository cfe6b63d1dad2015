"""certstore info: show storage status and high-level counts."""

from __future__ import annotations

import os
from typing import Any

import typer

from certstore.cli import _exitcodes as ec
from certstore.cli._output import print_error, print_object
from certstore.cli._storage import open_store, resolve_endpoint
from certstore.errors import CertStoreError
from certstore.storage import parse_storage_target


def info_cmd() -> None:
    """Show storage status, key count and lease count."""
    from certstore.cli import state

    json_mode = state.json_output
    try:
        target = parse_storage_target(resolve_endpoint())
    except CertStoreError as e:
        print_error(f"Invalid storage endpoint: {e}")
        raise typer.Exit(ec.USAGE_ERROR)

    if not os.path.exists(target.db_path):
        print_error(f"Database not found: {target.db_path}")
        raise typer.Exit(ec.DATABASE_ERROR)

    store = open_store(create_tables=False)
    try:
        data: dict[str, Any] = dict(store.storage_info())
        data["file_size_bytes"] = os.path.getsize(target.db_path)
        leases = store.list_locks()
        data["key_count"] = len(store.list_keys(""))
        data["lease_count"] = len(leases)
        data["active_lease_count"] = sum(1 for lease in leases if lease.active)
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(ec.DATABASE_ERROR)
    finally:
        store.close()

    if json_mode:
        print_object(data, json_mode=True)
        return

    print(f"Backend: {data['backend']}")
    print(f"Database: {data['db_path']}")
    print(f"File size: {int(data['file_size_bytes']):,} bytes")
    print(f"Query timeout: {data['query_timeout']:g}s")
    print(f"Lock timeout: {data['lock_timeout']:g}s")
    print(f"Keys: {data['key_count']}")
    print(f"Leases: {data['lease_count']} ({data['active_lease_count']} active)")
