"""Tests for stagekv get/create/upsert/update/drop commands."""

import json

from stagekv.cli import _exitcodes as ec
from tests.cli.conftest import invoke


def test_create_json(runner, cli_db, schema_file):
    result = invoke(
        runner,
        ["--json", "create", "user", "bob", "--data", '{"name": "Bob", "age": 3}'],
        cli_db,
        schema_file,
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"name": "Bob", "age": 3}


def test_create_text(runner, cli_db, schema_file):
    result = invoke(runner, ["create", "user", "bob", "--set", "name=Bob"], cli_db, schema_file)
    assert result.exit_code == 0
    assert "name: Bob" in result.stdout


def test_create_twice_conflicts(runner, seeded_db, schema_file):
    result = invoke(runner, ["create", "user", "alice", "--set", "name=A"], seeded_db, schema_file)
    assert result.exit_code == ec.CONFLICT
    assert "already exists" in result.output


def test_create_type_mismatch(runner, cli_db, schema_file):
    result = invoke(runner, ["create", "user", "bob", "--set", "name=42"], cli_db, schema_file)
    assert result.exit_code == ec.VALIDATION_ERROR


def test_create_save_default(runner, cli_db, schema_file):
    result = invoke(
        runner,
        ["--save-default", "--json", "create", "note", "n1", "--set", "body=hi"],
        cli_db,
        schema_file,
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"body": "hi", "pinned": False, "meta": {}}


def test_get(runner, seeded_db, schema_file):
    result = invoke(runner, ["--json", "get", "user", "alice"], seeded_db, schema_file)
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"name": "Alice"}


def test_get_field_default(runner, seeded_db, schema_file):
    result = invoke(runner, ["get", "user", "alice", "--field", "age"], seeded_db, schema_file)
    assert result.exit_code == 0
    assert result.stdout.strip() == "0"


def test_get_missing(runner, seeded_db, schema_file):
    result = invoke(runner, ["get", "user", "ghost"], seeded_db, schema_file)
    assert result.exit_code == ec.NOT_FOUND


def test_get_unknown_model(runner, seeded_db, schema_file):
    result = invoke(runner, ["get", "ghost", "alice"], seeded_db, schema_file)
    assert result.exit_code == ec.SCHEMA_ERROR


def test_upsert_creates_then_merges(runner, cli_db, schema_file):
    result = invoke(runner, ["upsert", "user", "bob", "--set", "name=Bob"], cli_db, schema_file)
    assert result.exit_code == 0
    result = invoke(
        runner, ["--json", "upsert", "user", "bob", "--set", "age=7"], cli_db, schema_file
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"name": "Bob", "age": 7}


def test_update(runner, seeded_db, schema_file):
    result = invoke(
        runner, ["--json", "update", "user", "alice", "--set", "age=31"], seeded_db, schema_file
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"name": "Alice", "age": 31}


def test_update_missing(runner, seeded_db, schema_file):
    result = invoke(runner, ["update", "user", "ghost", "--set", "age=1"], seeded_db, schema_file)
    assert result.exit_code == ec.NOT_FOUND
    assert "has no instance" in result.output


def test_update_requires_changes(runner, seeded_db, schema_file):
    result = invoke(runner, ["update", "user", "alice"], seeded_db, schema_file)
    assert result.exit_code == ec.USAGE_ERROR


def test_bad_data_json(runner, cli_db, schema_file):
    result = invoke(runner, ["create", "user", "x", "--data", "{nope"], cli_db, schema_file)
    assert result.exit_code == ec.USAGE_ERROR


def test_drop(runner, seeded_db, schema_file):
    result = invoke(runner, ["drop", "user", "alice", "ghost"], seeded_db, schema_file)
    assert result.exit_code == 0
    assert "Dropped 2 instance(s) of user" in result.stdout
    result = invoke(runner, ["get", "user", "alice"], seeded_db, schema_file)
    assert result.exit_code == ec.NOT_FOUND


def test_namespaces_are_isolated(runner, seeded_db, schema_file):
    result = invoke(runner, ["--namespace", "other", "get", "user", "alice"], seeded_db, schema_file)
    assert result.exit_code == ec.NOT_FOUND


def test_missing_schema_file(runner, cli_db, tmp_path):
    missing = str(tmp_path / "nope.yaml")
    result = invoke(runner, ["get", "user", "alice"], cli_db, missing)
    assert result.exit_code == ec.SCHEMA_ERROR


def test_schema_from_env(runner, cli_db, schema_file, monkeypatch):
    monkeypatch.setenv("STAGEKV_SCHEMA", schema_file)
    result = invoke(runner, ["create", "user", "bob", "--set", "name=Bob"], cli_db)
    assert result.exit_code == 0


def test_version(runner):
    result = invoke(runner, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.startswith("stagekv ")
