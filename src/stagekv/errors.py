"""Structured error types for stagekv."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable failure kinds."""

    UNKNOWN_STORAGE = "UNKNOWN_STORAGE"
    UNDEFINED_MODEL = "UNDEFINED_MODEL"
    UNKNOWN_PROPERTY = "UNKNOWN_PROPERTY"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    ERROR_FIELD_TYPE = "ERROR_FIELD_TYPE"
    INSTANCE_ALREADY_EXIST = "INSTANCE_ALREADY_EXIST"
    INSTANCE_NOT_EXIST = "INSTANCE_NOT_EXIST"
    INVALID_SCHEMA = "INVALID_SCHEMA"
    NO_CURSOR = "NO_CURSOR"


class StageError(Exception):
    """Base error for all stagekv errors.

    Every error carries a ``code`` plus whichever of ``model``, ``field``,
    ``instance`` and ``storage`` identify the offending item.
    """

    code: ErrorCode

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        field: str | None = None,
        instance: str | None = None,
        storage: str | None = None,
    ) -> None:
        self.model = model
        self.field = field
        self.instance = instance
        self.storage = storage
        super().__init__(message)


class UnknownStorageBackendError(StageError):
    """Raised when the factory is given an unrecognized backend kind."""

    code = ErrorCode.UNKNOWN_STORAGE

    def __init__(self, storage: str) -> None:
        super().__init__(f"unknown storage backend: {storage}", storage=storage)


class UndefinedModelError(StageError):
    """Raised when an operation references a model that was never defined."""

    code = ErrorCode.UNDEFINED_MODEL

    def __init__(self, model: str) -> None:
        super().__init__(f"missing definition for model: {model}", model=model)


class UnknownPropertyError(StageError):
    """Raised when a record carries a field the model does not declare."""

    code = ErrorCode.UNKNOWN_PROPERTY

    def __init__(self, model: str, field: str) -> None:
        super().__init__(f"unknown property of model {model}: {field}", model=model, field=field)


class MissingRequiredFieldError(StageError):
    """Raised when a required field has no value at validation time."""

    code = ErrorCode.MISSING_REQUIRED_FIELD

    def __init__(self, model: str, field: str) -> None:
        super().__init__(f"{field} is required in model {model}", model=model, field=field)


class FieldTypeMismatchError(StageError):
    """Raised when a primitive-typed field holds a value of the wrong type."""

    code = ErrorCode.ERROR_FIELD_TYPE

    def __init__(self, model: str, field: str, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"value of {field} in model {model} should be {expected}, but got {actual}",
            model=model,
            field=field,
        )


class InstanceAlreadyExistError(StageError):
    """Raised when a create targets an identity that already has a record."""

    code = ErrorCode.INSTANCE_ALREADY_EXIST

    def __init__(self, model: str, instance: str) -> None:
        super().__init__(
            f"{instance} already exists in model {model}", model=model, instance=instance
        )


class InstanceNotExistError(StageError):
    """Raised when an update targets an identity with no stored record."""

    code = ErrorCode.INSTANCE_NOT_EXIST

    def __init__(self, model: str, instance: str) -> None:
        super().__init__(f"model {model} has no instance: {instance}", model=model, instance=instance)


class SchemaDefinitionError(StageError):
    """Raised when a raw schema mapping cannot be compiled into a model."""

    code = ErrorCode.INVALID_SCHEMA

    def __init__(self, model: str, detail: str, *, field: str | None = None) -> None:
        self.detail = detail
        where = f"{model}.{field}" if field else model
        super().__init__(f"invalid schema for {where}: {detail}", model=model, field=field)


class NoModelSelectedError(StageError):
    """Raised when a builder call needs a model but none was selected."""

    code = ErrorCode.NO_CURSOR

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation}() requires a model; call model() first")


class NoInstanceSelectedError(StageError):
    """Raised when property() is called before any instance was selected."""

    code = ErrorCode.NO_CURSOR

    def __init__(self, model: str) -> None:
        super().__init__(
            f"property() requires an instance of model {model}; call instance() first",
            model=model,
        )


class StorageBackendError(StageError):
    """Raised when a storage target cannot be resolved or opened."""

    code = ErrorCode.UNKNOWN_STORAGE

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"storage backend error during {operation}: {detail}")
