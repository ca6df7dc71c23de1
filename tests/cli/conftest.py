"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import yaml
from typer.testing import CliRunner

from stagekv.cli import app
from tests.conftest import USER

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("STAGEKV_DB", "STAGEKV_NAMESPACE", "STAGEKV_SCHEMA", "STAGEKV_SAVE_DEFAULT"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_db(tmp_path):
    return str(tmp_path / "cli_test.db")


@pytest.fixture
def schema_file(tmp_path):
    """YAML schema with a user and a note model."""
    path = tmp_path / "models.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "user": USER,
                "note": {
                    "body": {"type": "string"},
                    "pinned": {"type": "boolean", "default": False},
                    "meta": {"type": "json", "default": {}},
                },
            }
        )
    )
    return str(path)


@pytest.fixture
def seeded_db(runner, cli_db, schema_file):
    """A DB holding user 'alice'."""
    result = invoke(runner, ["create", "user", "alice", "--set", "name=Alice"], cli_db, schema_file)
    assert result.exit_code == 0
    return cli_db


def invoke(
    runner: CliRunner,
    args: list[str],
    db_path: str | None = None,
    schema_path: str | None = None,
) -> "Result":
    """Invoke the CLI with --db/--schema injected before the subcommand."""
    prefix: list[str] = []
    if db_path:
        prefix += ["--db", db_path]
    if schema_path:
        prefix += ["--schema", schema_path]
    return runner.invoke(app, prefix + args, catch_exceptions=False)
