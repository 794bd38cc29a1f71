"""
Configuration for BML.

One tunable: how entries sharing a name are stored. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/bml/config.toml) if exists
3. Environment variable BML_DUPLICATES overrides file
4. An explicit argument (parse(..., duplicates=...) or --duplicates) overrides everything
"""

from __future__ import annotations

import logging
import os
import tomllib  # stdlib in 3.11+
from dataclasses import dataclass, field
from pathlib import Path

from .dom import Duplicates

logger = logging.getLogger(__name__)


@dataclass
class StorageConfig:
    """Duplicate-entry policy; parsing itself is unaffected."""
    duplicates: Duplicates = Duplicates.PRESERVE_ALL


@dataclass
class Config:
    """Root config with all settings."""
    storage: StorageConfig = field(default_factory=StorageConfig)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "bml" / "config.toml"
    return Path.home() / ".config" / "bml" / "config.toml"


def load_config() -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    path = get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = _apply_toml(config, data)
        except (OSError, tomllib.TOMLDecodeError, ValueError) as e:
            logger.warning("ignoring config file %s: %s", path, e)

    # env var overrides
    config = _apply_env(config)

    return config


def _apply_toml(config: Config, data: dict) -> Config:
    """Apply toml data to config."""
    if "storage" in data:
        s = data["storage"]
        if "duplicates" in s:
            config.storage.duplicates = Duplicates.coerce(s["duplicates"])

    return config


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    val = os.environ.get("BML_DUPLICATES")
    if val is not None:
        try:
            config.storage.duplicates = Duplicates.coerce(val)
        except ValueError as e:
            logger.warning("ignoring BML_DUPLICATES: %s", e)

    return config


# Module-level config instance, loaded on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached config so the next get_config() reloads it."""
    global _config
    _config = None
