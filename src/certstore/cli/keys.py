"""certstore keys: read, write and enumerate stored keys."""

from __future__ import annotations

import sys
from typing import Optional

import typer

from certstore.cli import _exitcodes as ec
from certstore.cli._output import print_error, print_object, print_records
from certstore.cli._storage import exit_code_for, open_store
from certstore.errors import CertStoreError

app = typer.Typer(no_args_is_help=True)


@app.command(name="get")
def get_cmd(
    key: str = typer.Argument(..., help="Key to read"),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write the value to this file instead of stdout"
    ),
) -> None:
    """Print the value stored at KEY."""
    store = open_store(create_tables=False)
    try:
        value = store.get(key)
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(exit_code_for(e))
    finally:
        store.close()

    if output:
        with open(output, "wb") as f:
            f.write(value)
        return
    sys.stdout.buffer.write(value)
    sys.stdout.flush()


@app.command(name="put")
def put_cmd(
    key: str = typer.Argument(..., help="Key to write"),
    value: Optional[str] = typer.Option(None, "--value", help="UTF-8 text value"),
    file: Optional[str] = typer.Option(None, "--file", help="Read the value from this file"),
) -> None:
    """Store a value at KEY, replacing any previous value."""
    if (value is None) == (file is None):
        print_error("Exactly one of --value or --file is required")
        raise typer.Exit(ec.USAGE_ERROR)

    if file is None:
        data = str(value).encode("utf-8")
    else:
        try:
            with open(file, "rb") as f:
                data = f.read()
        except OSError as e:
            print_error(f"Cannot read {file}: {e}")
            raise typer.Exit(ec.USAGE_ERROR)

    store = open_store()
    try:
        store.put(key, data)
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(exit_code_for(e))
    finally:
        store.close()


@app.command(name="delete")
def delete_cmd(key: str = typer.Argument(..., help="Key to delete")) -> None:
    """Delete KEY. Deleting an absent key succeeds."""
    store = open_store()
    try:
        store.delete(key)
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(exit_code_for(e))
    finally:
        store.close()


@app.command(name="exists")
def exists_cmd(key: str = typer.Argument(..., help="Key to check")) -> None:
    """Exit 0 if KEY exists, otherwise exit with the not-found code."""
    from certstore.cli import state

    store = open_store(create_tables=False)
    try:
        found = store.exists(key)
    finally:
        store.close()

    if state.json_output:
        print_object({"key": key, "exists": found}, json_mode=True)
    else:
        print("yes" if found else "no")
    if not found:
        raise typer.Exit(ec.NOT_FOUND)


@app.command(name="list")
def list_cmd(
    prefix: str = typer.Argument("", help="Literal key prefix"),
    recursive: bool = typer.Option(False, "--recursive", help="Walk nested keys"),
) -> None:
    """List keys starting with PREFIX in ascending order."""
    from certstore.cli import state

    store = open_store(create_tables=False)
    try:
        found = store.list_keys(prefix, recursive=recursive)
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(exit_code_for(e))
    finally:
        store.close()

    if state.json_output:
        print_object(found, json_mode=True)
        return
    for key in found:
        print(key)


@app.command(name="stat")
def stat_cmd(key: str = typer.Argument(..., help="Key to describe")) -> None:
    """Show size and modification time of KEY."""
    from certstore.cli import state

    store = open_store(create_tables=False)
    try:
        info = store.stat(key)
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(exit_code_for(e))
    finally:
        store.close()

    if state.json_output:
        print_object(info.model_dump(mode="json"), json_mode=True)
        return
    print_records([info])
