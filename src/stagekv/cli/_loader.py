"""Schema loader: read model definitions from a YAML or JSON file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml


def load_schemas(schema_path: str | None) -> dict[str, dict[str, Any]]:
    """Load model schemas from a file.

    The file holds a mapping of model name to field descriptors, e.g.::

        user:
          name: {type: string}
          age: {type: number, default: 0}

    Files ending in ``.json`` are parsed as JSON, anything else as YAML.
    """
    if not schema_path:
        raise ValueError("A schema file is required (--schema or STAGEKV_SCHEMA)")
    path = Path(schema_path)
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_path}")

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Schema file must contain a mapping of models: {schema_path}")
    for name, schema in data.items():
        if not isinstance(schema, dict):
            raise ValueError(f"Model '{name}' must be a mapping of fields")
    return data
