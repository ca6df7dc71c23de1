"""stagekv CLI: read and stage records in a persistent store."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from stagekv.cli import records, schema

app = typer.Typer(
    name="stagekv",
    help="stagekv CLI — read and stage schema-validated records in a persistent store.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    db: str | None = None
    namespace: str | None = None
    schema: str | None = None
    save_default: bool = False
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("stagekv")
        except Exception:
            v = "unknown"
        print(f"stagekv {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(
        None,
        "--db",
        envvar="STAGEKV_DB",
        help="SQLite database file path (default: stagekv.db)",
    ),
    namespace: Optional[str] = typer.Option(
        None,
        "--namespace",
        "-n",
        envvar="STAGEKV_NAMESPACE",
        help="Key namespace (default: default)",
    ),
    schema_path: Optional[str] = typer.Option(
        None,
        "--schema",
        "-s",
        envvar="STAGEKV_SCHEMA",
        help="YAML or JSON file of model definitions",
    ),
    save_default: bool = typer.Option(
        False, "--save-default", help="Persist default values into stored records"
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log commit steps"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all stagekv commands."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    state.db = db
    state.namespace = namespace
    state.schema = schema_path
    state.save_default = save_default
    state.json_output = json_output
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


app.command(name="get")(records.get_cmd)
app.command(name="create")(records.create_cmd)
app.command(name="upsert")(records.upsert_cmd)
app.command(name="update")(records.update_cmd)
app.command(name="drop")(records.drop_cmd)
app.command(name="schema")(schema.schema_cmd)


def main() -> None:
    """Entry point for the stagekv CLI."""
    app()
