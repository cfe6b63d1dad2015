"""certstore export: dump stored records to a JSON or YAML file."""

from __future__ import annotations

import base64
import json
from typing import Any

import typer
import yaml

from certstore.cli import _exitcodes as ec
from certstore.cli._output import print_error, print_object
from certstore.cli._storage import exit_code_for, open_store
from certstore.errors import CertStoreError, NotFoundError

EXPORT_FORMAT_VERSION = 1


def export_cmd(
    output: str = typer.Option(..., "--output", help="Output file path"),
    prefix: str = typer.Option("", "--prefix", help="Export only keys with this literal prefix"),
    fmt: str = typer.Option("json", "--format", help="Output format: json or yaml"),
) -> None:
    """Export records with base64-encoded values."""
    from certstore.cli import state

    if fmt not in ("json", "yaml"):
        print_error(f"Unsupported format '{fmt}' (expected json or yaml)")
        raise typer.Exit(ec.USAGE_ERROR)

    store = open_store(create_tables=False)
    records: list[dict[str, Any]] = []
    skipped = 0
    try:
        for key in store.list_keys(prefix):
            try:
                value = store.get(key)
                info = store.stat(key)
            except NotFoundError:
                # Deleted by another process since listing.
                skipped += 1
                continue
            records.append(
                {
                    "key": key,
                    "value": base64.b64encode(value).decode("ascii"),
                    "modified": info.modified.isoformat(),
                }
            )
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(exit_code_for(e))
    finally:
        store.close()

    document = {"version": EXPORT_FORMAT_VERSION, "records": records}
    with open(output, "w") as f:
        if fmt == "yaml":
            yaml.safe_dump(document, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(document, f, indent=2)

    summary = {"output": output, "format": fmt, "records": len(records), "skipped": skipped}
    print_object(summary, json_mode=state.json_output)
