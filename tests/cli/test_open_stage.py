"""Tests for building a Stage from CLI state."""

import pytest
import yaml

from stagekv.cli import state
from stagekv.cli._storage import close_stage, open_stage
from stagekv.errors import SchemaDefinitionError
from stagekv.storage import SqliteStorage


@pytest.fixture
def closed(monkeypatch):
    """Record the db path of every SqliteStorage that gets closed."""
    paths: list[str] = []
    original = SqliteStorage.close

    def _close(self):
        paths.append(self.db_path)
        original(self)

    monkeypatch.setattr(SqliteStorage, "close", _close)
    return paths


def test_open_stage(monkeypatch, cli_db, schema_file, closed):
    monkeypatch.setattr(state, "db", cli_db)
    monkeypatch.setattr(state, "schema", schema_file)
    stage = open_stage()
    assert isinstance(stage.storage, SqliteStorage)
    assert set(stage.models) == {"user", "note"}
    close_stage(stage)
    assert closed == [cli_db]


def test_bad_schema_closes_connection(monkeypatch, cli_db, tmp_path, closed):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"user": {"name": {"type": "date"}}}))
    monkeypatch.setattr(state, "db", cli_db)
    monkeypatch.setattr(state, "schema", str(path))
    with pytest.raises(SchemaDefinitionError):
        open_stage()
    assert closed == [cli_db]
