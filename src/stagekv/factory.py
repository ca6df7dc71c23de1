"""Factory: collect model definitions, then bind Stages to a backend kind."""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import replace
from typing import Any

from stagekv.config import StageConfig
from stagekv.model import Model
from stagekv.stage import Stage
from stagekv.storage import MemoryStorage, StorageBackend, open_storage, parse_storage_target


class StorageFactory:
    """Holds model schemas ahead of backend selection.

    Calling the factory with a backend kind (``local``, ``session`` or
    ``cookie``) returns a new Stage bound to that kind with every model
    defined so far. Stages of the ``session`` kind share the factory's
    in-memory store, and ``cookie`` stages share its jar unless one is
    passed in::

        storage = start_storage()
        storage.define("user", {"name": {"type": "string"}})
        stage = storage("session", "app")
    """

    def __init__(self) -> None:
        self._schemas: dict[str, dict[str, Any]] = {}
        # Shared by every session/cookie stage; namespaces partition them.
        self._session = MemoryStorage()
        self._jar: dict[str, str] = {}

    def define(self, name: str, schema: dict[str, Any]) -> StorageFactory:
        # Compile eagerly so a bad schema fails at definition time.
        Model(name, schema)
        self._schemas[name] = schema
        return self

    @property
    def schemas(self) -> dict[str, dict[str, Any]]:
        return dict(self._schemas)

    def __call__(
        self,
        kind: str,
        namespace: str | None = None,
        *,
        config: StageConfig | None = None,
        storage: StorageBackend | None = None,
        jar: MutableMapping[str, str] | None = None,
    ) -> Stage:
        cfg = config or StageConfig()
        if namespace is not None:
            cfg = replace(cfg, namespace=namespace)
        if storage is None:
            storage = open_storage(
                kind,
                namespace=cfg.namespace,
                db_path=cfg.db_path,
                jar=jar if jar is not None else self._jar,
                session=self._session,
            )
        else:
            # An injected backend still has to name a known kind.
            parse_storage_target(kind, db_path=cfg.db_path)
        return Stage(storage, models=self._schemas, config=cfg)


def start_storage() -> StorageFactory:
    """Create a fresh factory with no models defined."""
    return StorageFactory()
