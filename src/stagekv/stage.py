"""Stage: fluent mutation builder and ordered commit over a key/value backend."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from stagekv.config import StageConfig
from stagekv.errors import (
    InstanceAlreadyExistError,
    InstanceNotExistError,
    NoInstanceSelectedError,
    NoModelSelectedError,
    StageError,
    UndefinedModelError,
)
from stagekv.model import MISSING, Model
from stagekv.storage import StorageBackend

logger = logging.getLogger(__name__)

Payloads = dict[str, dict[str, dict[str, Any]]]


@dataclass
class _Cursor:
    """What the builder chain currently points at."""

    model: str | None = None
    instance: str | None = None
    property: str | None = None
    target: Literal["instance", "property"] | None = None


@dataclass
class _Pending:
    """Staged mutations keyed by model, then instance name."""

    create: Payloads = field(default_factory=dict)
    upsert: Payloads = field(default_factory=dict)
    update: Payloads = field(default_factory=dict)
    drop: dict[str, list[str]] = field(default_factory=dict)

    def open(self, model: str) -> None:
        self.create.setdefault(model, {})
        self.upsert.setdefault(model, {})
        self.update.setdefault(model, {})
        self.drop.setdefault(model, [])

    def is_empty(self) -> bool:
        return not any(
            any(bucket.values()) for bucket in (self.create, self.upsert, self.update, self.drop)
        )


class Stage:
    """Stages create/upsert/update/drop mutations and applies them on ``end()``.

    Builder calls only touch in-memory buckets. ``end()`` takes the staged
    batch, clears the buckets and applies the batch phase by phase:
    drop, then create, then upsert, then update. Every write is validated
    against the model first. A failure stops the commit; writes from
    earlier items stay applied.

    Usage::

        stage = Stage(MemoryStorage(), models={"user": {"name": {"type": "string"}}})
        stage.model("user").instance("alice", {"name": "Alice"}).end()
    """

    def __init__(
        self,
        storage: StorageBackend,
        namespace: str | None = None,
        models: Mapping[str, Mapping[str, Any]] | None = None,
        *,
        config: StageConfig | None = None,
    ) -> None:
        self._config = config or StageConfig()
        self.namespace = namespace if namespace is not None else self._config.namespace
        self.save_default = self._config.save_default
        self.storage = storage
        self._models: dict[str, Model] = {}
        self._pending = _Pending()
        self._cursor = _Cursor()
        for name, schema in (models or {}).items():
            self.define(name, schema)

    def __enter__(self) -> Stage:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: Any,
    ) -> None:
        """Commit staged work when the block exits cleanly."""
        if exc_type is None:
            self.end()

    def __repr__(self) -> str:
        return f"Stage(namespace={self.namespace!r}, models={list(self._models)!r})"

    @property
    def models(self) -> dict[str, Model]:
        return dict(self._models)

    @property
    def has_pending(self) -> bool:
        return not self._pending.is_empty()

    def key(self, model: str, instance: str) -> str:
        return f"{self.namespace}:{model}:{instance}"

    def get_model(self, name: str) -> Model:
        model = self._models.get(name)
        if model is None:
            raise UndefinedModelError(name)
        return model

    # --- Builder ---

    def define(self, name: str, schema: Mapping[str, Any]) -> Stage:
        self._models[name] = Model(name, schema)
        self._cursor.target = None
        return self

    def model(self, name: str) -> Stage:
        self.get_model(name)
        self._cursor = _Cursor(model=name)
        self._pending.open(name)
        return self

    def instance(self, name: str, value: Mapping[str, Any] = MISSING) -> Stage:
        model = self._current_model("instance")
        self._cursor.instance = name
        self._cursor.target = "instance"
        if value is not MISSING:
            self._pending.upsert[model][name] = copy.deepcopy(dict(value))
        self._pending.update[model][name] = {}
        return self

    def property(self, name: str | Mapping[str, Any], value: Any = MISSING) -> Any:
        """Stage field changes on the current instance, or read one field.

        ``property(mapping)`` and ``property(name, value)`` add to the
        instance's pending update and return the Stage. ``property(name)``
        commits and returns that field's value after the commit.
        """
        model = self._current_model("property")
        instance = self._cursor.instance
        if instance is None:
            raise NoInstanceSelectedError(model)
        payload = self._pending.update[model].setdefault(instance, {})

        if isinstance(name, Mapping):
            payload.update(copy.deepcopy(dict(name)))
            self._cursor.target = "instance"
            return self
        if value is not MISSING:
            payload[name] = copy.deepcopy(value)
            self._cursor.target = "instance"
            return self

        self._cursor.property = name
        self._cursor.target = "property"
        return self.end()

    def create(self, name: str, obj: Mapping[str, Any]) -> Stage:
        model = self._current_model("create")
        self._pending.create[model][name] = copy.deepcopy(dict(obj))
        self._cursor.instance = name
        self._cursor.target = "instance"
        return self

    def drop(self, name: str) -> Stage:
        model = self._current_model("drop")
        self._pending.create[model].pop(name, None)
        self._pending.upsert[model].pop(name, None)
        self._pending.update[model].pop(name, None)
        if name not in self._pending.drop[model]:
            self._pending.drop[model].append(name)
        self._cursor.target = None
        return self

    def _current_model(self, operation: str) -> str:
        model = self._cursor.model
        if model is None:
            raise NoModelSelectedError(operation)
        self._pending.open(model)
        return model

    # --- Commit ---

    def end(self) -> Any:
        """Apply staged mutations and return the addressed record or field.

        Returns the post-commit record when the chain last addressed an
        instance, the post-commit field value when it last read a property,
        and ``None`` otherwise.
        """
        pending, self._pending = self._pending, _Pending()
        if self._cursor.model is not None:
            self._pending.open(self._cursor.model)

        self._apply_drops(pending.drop)
        self._apply_creates(pending.create)
        self._apply_upserts(pending.upsert)
        self._apply_updates(pending.update)

        cursor = self._cursor
        if cursor.model is None or cursor.instance is None:
            return None
        if cursor.target == "instance":
            return self.get(cursor.model, cursor.instance)
        if cursor.target == "property":
            return self.get(cursor.model, cursor.instance, cursor.property)
        return None

    def _apply_drops(self, drops: dict[str, list[str]]) -> None:
        for model_name, names in drops.items():
            for name in names:
                logger.debug("drop %s", self.key(model_name, name))
                self.storage.remove_item(self.key(model_name, name))

    def _apply_creates(self, creates: Payloads) -> None:
        for model_name, payloads in creates.items():
            model = self.get_model(model_name)
            for name, data in payloads.items():
                model.validate(
                    data,
                    validate_not_provided=True,
                    assign_default=self.save_default,
                    prune=True,
                )
                if self.exists(model_name, name):
                    raise InstanceAlreadyExistError(model_name, name)
                self._write(model_name, name, data)

    def _apply_upserts(self, upserts: Payloads) -> None:
        for model_name, payloads in upserts.items():
            model = self.get_model(model_name)
            for name, data in payloads.items():
                current = self._read(model_name, name, assign_default=self.save_default)
                if current is not None:
                    for prop, value in data.items():
                        model.validate_field(prop, value)
                    self._write(model_name, name, {**current, **data})
                    continue
                model.validate(
                    data,
                    validate_not_provided=True,
                    assign_default=self.save_default,
                    prune=True,
                )
                self._write(model_name, name, data)

    def _apply_updates(self, updates: Payloads) -> None:
        for model_name, payloads in updates.items():
            model = self.get_model(model_name)
            for name, data in payloads.items():
                if not data:
                    continue
                for prop, value in data.items():
                    model.validate_field(prop, value)
                current = self._read(model_name, name, assign_default=self.save_default)
                if current is None:
                    raise InstanceNotExistError(model_name, name)
                self._write(model_name, name, {**current, **data})

    # --- Reads ---

    def get(self, model: str, instance: str, property: str | None = None) -> Any:
        """Read a stored record, or one of its fields.

        Returns ``None`` when the record is absent. A field the record lacks
        reads as the field's default when it has one.
        """
        record = self._read(model, instance)
        if property is None or record is None:
            return record
        value = record.get(property, MISSING)
        if value is MISSING:
            value = self.get_model(model).default_for(property)
        return None if value is MISSING else value

    def exists(self, model: str, instance: str) -> bool:
        return self._read(model, instance) is not None

    def _read(
        self, model_name: str, instance: str, *, assign_default: bool = False
    ) -> dict[str, Any] | None:
        model = self.get_model(model_name)
        key = self.key(model_name, instance)
        raw = self.storage.get_item(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            model.validate(data, validate_not_provided=True, assign_default=assign_default)
        except (ValueError, StageError) as e:
            logger.warning("Removing unreadable record %s: %s", key, e)
            self.storage.remove_item(key)
            return None
        return data

    def _write(self, model_name: str, instance: str, data: dict[str, Any]) -> None:
        key = self.key(model_name, instance)
        logger.debug("write %s", key)
        self.storage.set_item(key, json.dumps(data))
