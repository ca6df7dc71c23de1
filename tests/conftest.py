"""Shared test fixtures for stagekv tests."""

from __future__ import annotations

import pytest

from stagekv import MemoryStorage, Stage, StageConfig

# --- Test model schemas ---

USER = {
    "name": {"type": "string"},
    "age": {"type": "number", "default": 0},
}

POST = {
    "title": {"type": "string"},
    "author": {"type": "reference"},
    "tags": {"type": "json", "default": list},
    "published": {"type": "boolean", "default": False},
    "subtitle": {"type": "string", "default": None},
}

MODELS = {"user": USER, "post": POST}


# --- Fixtures ---


@pytest.fixture
def storage():
    """Fresh in-memory backend."""
    return MemoryStorage()


@pytest.fixture
def stage(storage):
    """Stage that leaves defaults out of stored records."""
    return Stage(storage, "test", models=MODELS)


@pytest.fixture
def saving_stage(storage):
    """Stage that writes defaults into stored records."""
    return Stage(storage, models=MODELS, config=StageConfig(namespace="test", save_default=True))


@pytest.fixture
def tmp_db(tmp_path):
    """Temporary SQLite database path."""
    return str(tmp_path / "test.db")
