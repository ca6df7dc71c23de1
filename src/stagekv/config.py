"""Configuration for stagekv stages."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class StageConfig:
    """Configuration for a Stage and the backend it is bound to."""

    namespace: str = "default"
    save_default: bool = False
    db_path: str | None = None

    @classmethod
    def from_env(cls) -> StageConfig:
        """Build a config from ``STAGEKV_*`` environment variables."""
        defaults = cls()
        save_default = os.getenv("STAGEKV_SAVE_DEFAULT")
        return cls(
            namespace=os.getenv("STAGEKV_NAMESPACE") or defaults.namespace,
            save_default=(
                save_default.strip().lower() in _TRUTHY
                if save_default is not None
                else defaults.save_default
            ),
            db_path=os.getenv("STAGEKV_DB") or defaults.db_path,
        )
