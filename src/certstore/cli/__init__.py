"""certstore CLI: operator console for inspecting and managing a certificate store."""

from __future__ import annotations

import logging
from typing import Optional

import typer
from click.core import ParameterSource

from certstore.cli import export_cmd, import_cmd, info, init_cmd, keys, locks

app = typer.Typer(
    name="certstore",
    help="certstore CLI: operator console for certificate storage and leases.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    db: str = "certstore.db"
    storage_uri: str | None = None
    query_timeout: str | None = None
    lock_timeout: str | None = None
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("certstore")
        except Exception:
            v = "unknown"
        print(f"certstore {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(
        None,
        "--db",
        envvar="CERTSTORE_DB",
        help="SQLite database file path (default: certstore.db)",
    ),
    storage_uri: Optional[str] = typer.Option(
        None,
        "--storage-uri",
        envvar="CERTSTORE_STORAGE_URI",
        help="Backend storage URI (e.g. sqlite:///var/lib/certstore.db)",
    ),
    query_timeout: Optional[str] = typer.Option(
        None,
        "--query-timeout",
        envvar="CERTSTORE_QUERY_TIMEOUT",
        help="Per-operation deadline, e.g. 3s or 500ms",
    ),
    lock_timeout: Optional[str] = typer.Option(
        None,
        "--lock-timeout",
        envvar="CERTSTORE_LOCK_TIMEOUT",
        help="Lease duration for acquired locks, e.g. 1m",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    log_level: str = typer.Option(
        "WARNING", "--log-level", envvar="CERTSTORE_LOG_LEVEL", help="Logging level"
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all certstore commands."""
    from certstore.storage import parse_storage_target

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level '{log_level}'")
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s", force=True
    )

    db_source = ctx.get_parameter_source("db")
    uri_source = ctx.get_parameter_source("storage_uri")

    resolved_uri = storage_uri
    # Explicit --db overrides CERTSTORE_STORAGE_URI when --storage-uri is not explicitly set.
    if db_source == ParameterSource.COMMANDLINE and uri_source == ParameterSource.ENVIRONMENT:
        resolved_uri = None
    if resolved_uri:
        try:
            parse_storage_target(resolved_uri)
        except Exception as e:
            raise typer.BadParameter(str(e))

    state.db = db or "certstore.db"
    state.storage_uri = resolved_uri
    state.query_timeout = query_timeout
    state.lock_timeout = lock_timeout
    state.json_output = json_output
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


# Register subcommand groups
app.add_typer(keys.app, name="keys", help="Read, write and enumerate stored keys")
app.add_typer(locks.app, name="locks", help="Acquire, release and inspect leases")

# Register top-level commands
app.command(name="info")(info.info_cmd)
app.command(name="init")(init_cmd.init_cmd)
app.command(name="export")(export_cmd.export_cmd)
app.command(name="import")(import_cmd.import_cmd)


def main() -> None:
    """Entry point for the certstore CLI."""
    app()
