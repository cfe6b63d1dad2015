"""certstore locks: acquire, release and inspect leases."""

from __future__ import annotations

from typing import Optional

import typer

from certstore.cli._output import print_error, print_object, print_records
from certstore.cli._storage import exit_code_for, open_store
from certstore.errors import CertStoreError

app = typer.Typer(no_args_is_help=True)


@app.command(name="acquire")
def acquire_cmd(
    key: str = typer.Argument(..., help="Lease name"),
    lease: Optional[str] = typer.Option(
        None, "--lease", help="Lease duration (default: --lock-timeout)"
    ),
) -> None:
    """Take the lease on KEY; fails immediately if someone else holds it."""
    from certstore.cli import state

    store = open_store()
    try:
        store.acquire(key, lease=lease)
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(exit_code_for(e))
    finally:
        store.close()

    if state.json_output:
        print_object({"key": key, "status": "acquired"}, json_mode=True)
    else:
        print(f"Acquired: {key}")


@app.command(name="release")
def release_cmd(key: str = typer.Argument(..., help="Lease name")) -> None:
    """Release the lease on KEY regardless of holder."""
    from certstore.cli import state

    store = open_store()
    try:
        store.release(key)
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(exit_code_for(e))
    finally:
        store.close()

    if state.json_output:
        print_object({"key": key, "status": "released"}, json_mode=True)
    else:
        print(f"Released: {key}")


@app.command(name="list")
def list_cmd(
    active_only: bool = typer.Option(False, "--active", help="Hide expired leases"),
) -> None:
    """Show lease rows and whether each is still active."""
    from certstore.cli import state

    store = open_store(create_tables=False)
    try:
        leases = store.list_locks()
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(exit_code_for(e))
    finally:
        store.close()

    if active_only:
        leases = [lease for lease in leases if lease.active]
    print_records(leases, json_mode=state.json_output)
