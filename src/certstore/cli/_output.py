"""Output formatting helpers for the CLI."""

from __future__ import annotations

import json
import sys
from datetime import datetime
from typing import Any, Sequence

from pydantic import BaseModel


def _cell(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ", timespec="milliseconds")
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def print_records(
    records: Sequence[BaseModel],
    *,
    fields: Sequence[str] | None = None,
    json_mode: bool = False,
) -> None:
    """Print result models (``KeyInfo``, ``LeaseInfo``) as an aligned table or JSON array.

    ``fields`` selects and orders the columns; by default every model field is shown.
    """
    if json_mode:
        data = [r.model_dump(mode="json", include=set(fields) if fields else None) for r in records]
        print(json.dumps(data, indent=2))
        return

    if not records:
        return

    columns = list(fields) if fields else list(type(records[0]).model_fields)
    rows = [[_cell(getattr(r, c)) for c in columns] for r in records]
    widths = [max(len(c), *(len(row[i]) for row in rows)) for i, c in enumerate(columns)]

    print("  ".join(c.ljust(w) for c, w in zip(columns, widths)).rstrip())
    print("  ".join("-" * w for w in widths))
    for row in rows:
        print("  ".join(v.ljust(w) for v, w in zip(row, widths)).rstrip())


def print_object(data: dict[str, Any] | list[Any], *, json_mode: bool = False) -> None:
    """Print a single object or list as JSON or key-value pairs."""
    if json_mode:
        print(json.dumps(data, indent=2, default=str))
        return

    if isinstance(data, list):
        for item in data:
            print(f"  {item}")
        return

    for k, v in data.items():
        print(f"{k}: {v}")


def print_error(msg: str) -> None:
    """Print an error message to stderr."""
    print(f"Error: {msg}", file=sys.stderr)
