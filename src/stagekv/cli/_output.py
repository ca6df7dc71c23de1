"""Output formatting helpers for the CLI."""

from __future__ import annotations

import json
import sys
from typing import Any


def print_value(data: Any, *, json_mode: bool = False) -> None:
    """Print a record as JSON or key-value pairs, or a scalar as-is."""
    if json_mode:
        print(json.dumps(data, indent=2, default=str))
        return

    if isinstance(data, dict):
        for k, v in data.items():
            print(f"{k}: {json.dumps(v) if isinstance(v, (dict, list)) else v}")
        return

    print(data)


def print_error(msg: str) -> None:
    """Print an error message to stderr."""
    print(f"Error: {msg}", file=sys.stderr)
