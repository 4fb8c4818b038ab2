"""Configuration loader for clustersnap."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_CONFIG_PATH = "configs/clustersnap.yaml"


@dataclass(slots=True)
class Config:
    """Simple wrapper around the loaded configuration dictionary."""

    data: Dict[str, Any] = field(default_factory=dict)

    def get(self, path: str, default: Any | None = None) -> Any:
        """Return a key from the configuration using dot-notation."""

        cursor: Any = self.data
        for token in path.split("."):
            if not isinstance(cursor, dict):
                return default
            if token not in cursor:
                return default
            cursor = cursor[token]
        return cursor

    def pick(self, override: Any, path: str, default: Any | None = None) -> Any:
        """Return ``override`` unless it is None, else the configured value."""

        if override is not None:
            return override
        return self.get(path, default)


class ConfigLoader:
    """Loads the YAML configuration for one run.

    A missing file is not an error: the tools are usable with flags alone, so
    an empty configuration is returned instead.
    """

    @staticmethod
    def load(path: str | Path) -> Config:
        config_path = Path(path).expanduser().resolve()
        if not config_path.exists():
            return Config({})
        with config_path.open("r", encoding="utf-8") as handle:
            raw_config = yaml.safe_load(handle) or {}
        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration root in {config_path} must be a mapping")
        return Config(raw_config)


__all__ = ["Config", "ConfigLoader", "DEFAULT_CONFIG_PATH"]
