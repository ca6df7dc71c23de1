"""Model: compiled record schema and field validation."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
)
from pydantic import ValidationError as PydanticValidationError

from stagekv.errors import (
    FieldTypeMismatchError,
    MissingRequiredFieldError,
    SchemaDefinitionError,
    UnknownPropertyError,
)

FieldType = Literal["boolean", "string", "number", "json", "reference"]


class _Missing:
    """Marker for an absent value (distinct from ``None``)."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Missing:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Missing:
        return self


MISSING: Any = _Missing()

# Primitive types are checked strictly; json and reference accept anything.
_PRIMITIVE_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    "boolean": TypeAdapter(StrictBool),
    "string": TypeAdapter(StrictStr),
    "number": TypeAdapter(Union[StrictInt, StrictFloat]),
}


def type_name(value: Any) -> str:
    """Name a runtime value the way schema types are named."""
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (dict, list)):
        return "object"
    return type(value).__name__


class FieldDescriptor(BaseModel):
    """One declared field. The field is required unless ``default`` was given."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: FieldType
    default: Any = None

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set

    def get_default(self) -> Any:
        if not self.has_default:
            raise ValueError("field has no default")
        if callable(self.default):
            return self.default()
        return copy.deepcopy(self.default)

    def matches(self, value: Any) -> bool:
        adapter = _PRIMITIVE_ADAPTERS.get(self.type)
        if adapter is None:
            return True
        if value is None and self.has_default and self.default is None:
            return True
        # bool is an int subclass; only boolean fields take it
        if isinstance(value, bool) and self.type != "boolean":
            return False
        try:
            adapter.validate_python(value, strict=True)
        except PydanticValidationError:
            return False
        return True


class Model:
    """Compiled schema for one named record type.

    ``required`` and ``defaults`` partition ``fields``: a field without a
    ``default`` entry is required, every other field has a default that is
    either a literal or a zero-argument producer.
    """

    def __init__(self, name: str, schema: Mapping[str, Any]) -> None:
        if not isinstance(schema, Mapping):
            raise SchemaDefinitionError(name, "schema must be a mapping of field descriptors")
        self.name = name
        fields: dict[str, FieldDescriptor] = {}
        for field_name, raw in schema.items():
            if isinstance(raw, FieldDescriptor):
                descriptor = raw
            elif isinstance(raw, Mapping):
                try:
                    descriptor = FieldDescriptor.model_validate(dict(raw))
                except PydanticValidationError as e:
                    detail = "; ".join(err["msg"] for err in e.errors())
                    raise SchemaDefinitionError(name, detail, field=field_name) from e
            else:
                raise SchemaDefinitionError(
                    name, "field descriptor must be a mapping", field=field_name
                )
            if (
                descriptor.has_default
                and not callable(descriptor.default)
                and not descriptor.matches(descriptor.default)
            ):
                raise SchemaDefinitionError(
                    name,
                    f"default {descriptor.default!r} is not a {descriptor.type}",
                    field=field_name,
                )
            fields[field_name] = descriptor
        self._fields = fields
        self.required: tuple[str, ...] = tuple(n for n, f in fields.items() if not f.has_default)
        self.defaults: dict[str, Any] = {
            n: f.default for n, f in fields.items() if f.has_default
        }

    @property
    def fields(self) -> dict[str, FieldDescriptor]:
        return dict(self._fields)

    def __contains__(self, field: str) -> bool:
        return field in self._fields

    def __repr__(self) -> str:
        return f"Model({self.name!r}, fields={list(self._fields)!r})"

    def validate_field(self, property: str, value: Any = MISSING) -> None:
        """Validate one field value, raising a StageError subclass on failure."""
        descriptor = self._fields.get(property)
        if descriptor is None:
            raise UnknownPropertyError(self.name, property)
        if value is MISSING:
            if property in self.required:
                raise MissingRequiredFieldError(self.name, property)
            return
        if not descriptor.matches(value):
            raise FieldTypeMismatchError(self.name, property, descriptor.type, type_name(value))

    def validate(
        self,
        instance: dict[str, Any],
        *,
        validate_not_provided: bool = False,
        assign_default: bool = False,
        prune: bool = False,
    ) -> dict[str, Any]:
        """Validate ``instance`` in place and return it.

        Declared keys are checked with :meth:`validate_field`; undeclared keys
        are deleted when ``prune`` is set and left alone otherwise. Pruning
        happens before the required-field check, so a pruned key never
        satisfies it. Defaults are assigned last.
        """
        for prop in list(instance):
            if prop in self._fields:
                self.validate_field(prop, instance[prop])
            elif prune:
                del instance[prop]

        if validate_not_provided:
            for prop in self.required:
                if prop not in instance:
                    raise MissingRequiredFieldError(self.name, prop)

        if assign_default:
            for prop in self.defaults:
                if prop not in instance:
                    value = self._fields[prop].get_default()
                    self.validate_field(prop, value)
                    instance[prop] = value

        return instance

    def default_for(self, field: str) -> Any:
        """Compute the default of one field, or MISSING if it has none."""
        descriptor = self._fields.get(field)
        if descriptor is None:
            raise UnknownPropertyError(self.name, field)
        if not descriptor.has_default:
            return MISSING
        return descriptor.get_default()

    def to_schema(self) -> dict[str, Any]:
        """Describe the model as plain JSON-able data."""
        fields: dict[str, Any] = {}
        for name, f in self._fields.items():
            info: dict[str, Any] = {"type": f.type, "required": not f.has_default}
            if f.has_default:
                info["default"] = "<factory>" if callable(f.default) else f.default
            fields[name] = info
        return {"name": self.name, "fields": fields}
