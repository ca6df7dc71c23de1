"""stagekv: schema-validated staging layer over key/value storage."""

__version__ = "0.1.0"

from stagekv.config import StageConfig
from stagekv.errors import (
    ErrorCode,
    FieldTypeMismatchError,
    InstanceAlreadyExistError,
    InstanceNotExistError,
    MissingRequiredFieldError,
    SchemaDefinitionError,
    StageError,
    UndefinedModelError,
    UnknownPropertyError,
    UnknownStorageBackendError,
)
from stagekv.factory import StorageFactory, start_storage
from stagekv.model import MISSING, FieldDescriptor, Model
from stagekv.stage import Stage
from stagekv.storage import CookieStorage, MemoryStorage, SqliteStorage, StorageBackend

__all__ = [
    "__version__",
    "StageConfig",
    "ErrorCode",
    "StageError",
    "UnknownStorageBackendError",
    "UndefinedModelError",
    "UnknownPropertyError",
    "MissingRequiredFieldError",
    "FieldTypeMismatchError",
    "InstanceAlreadyExistError",
    "InstanceNotExistError",
    "SchemaDefinitionError",
    "MISSING",
    "FieldDescriptor",
    "Model",
    "Stage",
    "StorageFactory",
    "start_storage",
    "StorageBackend",
    "MemoryStorage",
    "SqliteStorage",
    "CookieStorage",
]
