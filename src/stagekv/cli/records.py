"""stagekv get/create/upsert/update/drop — read and stage record changes."""

from __future__ import annotations

import json
from typing import Any, Optional

import typer
import yaml

from stagekv.cli import _exitcodes as ec
from stagekv.cli._output import print_error, print_value
from stagekv.cli._storage import close_stage, open_stage
from stagekv.errors import ErrorCode, StageError
from stagekv.model import MISSING
from stagekv.stage import Stage

_EXIT_CODES = {
    ErrorCode.UNDEFINED_MODEL: ec.SCHEMA_ERROR,
    ErrorCode.INVALID_SCHEMA: ec.SCHEMA_ERROR,
    ErrorCode.UNKNOWN_PROPERTY: ec.VALIDATION_ERROR,
    ErrorCode.MISSING_REQUIRED_FIELD: ec.VALIDATION_ERROR,
    ErrorCode.ERROR_FIELD_TYPE: ec.VALIDATION_ERROR,
    ErrorCode.INSTANCE_ALREADY_EXIST: ec.CONFLICT,
    ErrorCode.INSTANCE_NOT_EXIST: ec.NOT_FOUND,
}


def _parse_payload(data: str | None, set_opts: list[str] | None) -> dict[str, Any]:
    """Merge a ``--data`` JSON object with ``--set KEY=VALUE`` pairs.

    VALUE is parsed as JSON when it can be, so ``--set age=31`` stores a
    number and ``--set name=Alice`` a string.
    """
    payload: dict[str, Any] = {}
    if data:
        try:
            parsed = json.loads(data)
        except ValueError as e:
            raise typer.BadParameter(f"--data is not valid JSON: {e}")
        if not isinstance(parsed, dict):
            raise typer.BadParameter("--data must be a JSON object")
        payload.update(parsed)
    for item in set_opts or []:
        if "=" not in item:
            raise typer.BadParameter(f"Invalid --set (expected KEY=VALUE): {item}")
        k, v = item.split("=", 1)
        try:
            payload[k] = json.loads(v)
        except ValueError:
            payload[k] = v
    return payload


def _open() -> Stage:
    try:
        return open_stage()
    except (StageError, OSError, ValueError, yaml.YAMLError) as e:
        print_error(str(e))
        raise typer.Exit(ec.SCHEMA_ERROR)
    except Exception as e:
        print_error(f"Cannot open store: {e}")
        raise typer.Exit(ec.DATABASE_ERROR)


def _run(stage: Stage, model: str, action: Any) -> Any:
    try:
        stage.model(model)
        return action()
    except StageError as e:
        print_error(str(e))
        raise typer.Exit(_EXIT_CODES.get(e.code, ec.GENERAL_ERROR))
    finally:
        close_stage(stage)


def get_cmd(
    model: str = typer.Argument(..., help="Model name"),
    instance: str = typer.Argument(..., help="Instance name"),
    field: Optional[str] = typer.Option(None, "--field", "-f", help="Read a single field"),
) -> None:
    """Print a stored record, or one of its fields."""
    from stagekv.cli import state

    stage = _open()

    def _read() -> Any:
        record = stage.get(model, instance)
        if record is None:
            return MISSING
        return record if field is None else stage.get(model, instance, field)

    value = _run(stage, model, _read)
    if value is MISSING:
        print_error(f"model {model} has no instance: {instance}")
        raise typer.Exit(ec.NOT_FOUND)
    print_value(value, json_mode=state.json_output)


def create_cmd(
    model: str = typer.Argument(..., help="Model name"),
    instance: str = typer.Argument(..., help="Instance name"),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Record as a JSON object"),
    set_opts: Optional[list[str]] = typer.Option(None, "--set", help="KEY=VALUE (repeatable)"),
) -> None:
    """Create a new record; fails if it already exists."""
    from stagekv.cli import state

    payload = _parse_payload(data, set_opts)
    stage = _open()
    record = _run(stage, model, lambda: stage.create(instance, payload).end())
    print_value(record, json_mode=state.json_output)


def upsert_cmd(
    model: str = typer.Argument(..., help="Model name"),
    instance: str = typer.Argument(..., help="Instance name"),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Record as a JSON object"),
    set_opts: Optional[list[str]] = typer.Option(None, "--set", help="KEY=VALUE (repeatable)"),
) -> None:
    """Create a record, or merge fields into an existing one."""
    from stagekv.cli import state

    payload = _parse_payload(data, set_opts)
    stage = _open()
    record = _run(stage, model, lambda: stage.instance(instance, payload).end())
    print_value(record, json_mode=state.json_output)


def update_cmd(
    model: str = typer.Argument(..., help="Model name"),
    instance: str = typer.Argument(..., help="Instance name"),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Changed fields as JSON"),
    set_opts: Optional[list[str]] = typer.Option(None, "--set", help="KEY=VALUE (repeatable)"),
) -> None:
    """Change fields of an existing record."""
    from stagekv.cli import state

    payload = _parse_payload(data, set_opts)
    if not payload:
        print_error("Nothing to update; pass --data or --set")
        raise typer.Exit(ec.USAGE_ERROR)
    stage = _open()
    record = _run(stage, model, lambda: stage.instance(instance).property(payload).end())
    print_value(record, json_mode=state.json_output)


def drop_cmd(
    model: str = typer.Argument(..., help="Model name"),
    instances: list[str] = typer.Argument(..., help="Instance names"),
) -> None:
    """Remove records. Removing an absent record is not an error."""
    from stagekv.cli import state

    stage = _open()

    def _drop() -> None:
        for name in instances:
            stage.drop(name)
        stage.end()

    _run(stage, model, _drop)
    if state.json_output:
        print_value({"model": model, "dropped": instances}, json_mode=True)
    else:
        print(f"Dropped {len(instances)} instance(s) of {model}")
