"""CLI helpers for building a Stage from the global CLI state."""

from __future__ import annotations

from stagekv.cli._loader import load_schemas
from stagekv.config import StageConfig
from stagekv.stage import Stage
from stagekv.storage import SqliteStorage, open_storage


def config_from_state() -> StageConfig:
    """Build the stage config from CLI options layered over the environment."""
    from stagekv.cli import state

    env = StageConfig.from_env()
    return StageConfig(
        namespace=state.namespace or env.namespace,
        save_default=state.save_default or env.save_default,
        db_path=state.db or env.db_path,
    )


def open_stage() -> Stage:
    """Open a Stage on the persistent store with the CLI's schema file."""
    from stagekv.cli import state

    schemas = load_schemas(state.schema)
    config = config_from_state()
    storage = open_storage("local", namespace=config.namespace, db_path=config.db_path)
    try:
        return Stage(storage, models=schemas, config=config)
    except Exception:
        if isinstance(storage, SqliteStorage):
            storage.close()
        raise


def close_stage(stage: Stage) -> None:
    if isinstance(stage.storage, SqliteStorage):
        stage.storage.close()
