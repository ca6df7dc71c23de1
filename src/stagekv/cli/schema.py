"""stagekv schema — print the loaded model definitions."""

from __future__ import annotations

import json
from typing import Any, Optional

import typer
import yaml

from stagekv.cli import _exitcodes as ec
from stagekv.cli._loader import load_schemas
from stagekv.cli._output import print_error
from stagekv.errors import StageError
from stagekv.model import Model


def schema_cmd(
    model: Optional[str] = typer.Argument(None, help="Only show this model"),
    fmt: str = typer.Option("json", "--format", help="Output format: json or yaml"),
    output: Optional[str] = typer.Option(None, "--output", help="Output file path"),
) -> None:
    """Compile the schema file and print each model's fields."""
    from stagekv.cli import state

    if fmt not in ("json", "yaml"):
        print_error("--format must be 'json' or 'yaml'")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        schemas = load_schemas(state.schema)
        models = [Model(name, schema) for name, schema in schemas.items()]
    except StageError as e:
        print_error(str(e))
        raise typer.Exit(ec.SCHEMA_ERROR)
    except Exception as e:
        print_error(f"Failed to load schema: {e}")
        raise typer.Exit(ec.GENERAL_ERROR)

    if model is not None:
        models = [m for m in models if m.name == model]
        if not models:
            print_error(f"missing definition for model: {model}")
            raise typer.Exit(ec.SCHEMA_ERROR)

    data = {"models": [m.to_schema() for m in models]}
    _write_output(data, output, fmt)


def _write_output(data: dict[str, Any], output: str | None, fmt: str) -> None:
    """Write schema data to file or stdout."""
    if fmt == "yaml":
        content = yaml.dump(data, default_flow_style=False, sort_keys=False)
    else:
        content = json.dumps(data, indent=2, default=str)

    if output:
        with open(output, "w") as f:
            f.write(content)
        print(f"Written to {output}")
    else:
        print(content)
