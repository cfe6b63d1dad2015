"""certstore import: load records written by ``certstore export``."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

import typer
import yaml

from certstore.cli import _exitcodes as ec
from certstore.cli._output import print_error, print_object
from certstore.cli._storage import exit_code_for, open_store
from certstore.errors import CertStoreError


def _load_document(path: str) -> dict[str, Any]:
    with open(path) as f:
        text = f.read()
    if path.endswith((".yaml", ".yml")):
        document = yaml.safe_load(text)
    else:
        try:
            document = json.loads(text)
        except json.JSONDecodeError:
            document = yaml.safe_load(text)
    if not isinstance(document, dict) or not isinstance(document.get("records"), list):
        raise ValueError("expected a mapping with a 'records' list")
    return document


def _decode_records(document: dict[str, Any]) -> list[tuple[str, bytes]]:
    decoded = []
    for i, record in enumerate(document["records"]):
        if not isinstance(record, dict) or not isinstance(record.get("key"), str):
            raise ValueError(f"record {i}: missing 'key'")
        try:
            value = base64.b64decode(record.get("value", ""), validate=True)
        except (binascii.Error, TypeError, ValueError) as e:
            raise ValueError(f"record {i} ({record['key']}): invalid base64 value: {e}")
        decoded.append((record["key"], value))
    return decoded


def import_cmd(
    input_path: str = typer.Option(..., "--input", help="File produced by certstore export"),
    skip_existing: bool = typer.Option(
        False, "--skip-existing", help="Leave keys that already exist untouched"
    ),
) -> None:
    """Import records, overwriting existing keys unless --skip-existing is given."""
    from certstore.cli import state

    try:
        records = _decode_records(_load_document(input_path))
    except (OSError, ValueError, yaml.YAMLError) as e:
        print_error(f"Cannot read {input_path}: {e}")
        raise typer.Exit(ec.USAGE_ERROR)

    store = open_store()
    written = 0
    skipped = 0
    try:
        for key, value in records:
            if skip_existing and store.exists(key):
                skipped += 1
                continue
            store.put(key, value)
            written += 1
    except CertStoreError as e:
        print_error(str(e))
        raise typer.Exit(exit_code_for(e))
    finally:
        store.close()

    print_object(
        {"input": input_path, "written": written, "skipped": skipped},
        json_mode=state.json_output,
    )
