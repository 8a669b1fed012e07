"""Configuration utilities for vaultpush CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "VAULTPUSH_CONFIG_DIR"

# Keys accepted by "vaultpush config set", with their value types
CONFIG_KEYS: dict[str, type] = {
    "remote": str,
    "max_attempts": int,
    "verify": bool,
    "timeout": float,
    "retry_delay": float,
    "log_dir": str,
    "compression_level": int,
}


def get_config_dir() -> Path:
    """Get the configuration directory for vaultpush.

    Returns:
        Path from $VAULTPUSH_CONFIG_DIR, or ~/.vaultpush.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".vaultpush"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_default_log_dir() -> Path:
    """Get the directory job logs are kept in when none is configured."""
    return get_config_dir() / "logs"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def parse_config_value(key: str, raw: str) -> Any:
    """Convert a command-line string to the type stored for a config key.

    Raises:
        KeyError: If the key is unknown.
        ValueError: If the value cannot be converted.
    """
    value_type = CONFIG_KEYS[key]
    if value_type is bool:
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Expected a boolean for {key}, got {raw!r}")
    return value_type(raw)
