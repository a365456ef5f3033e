"""
Data directory helpers.
"""

from __future__ import annotations

import os
from pathlib import Path


def get_default_data_dir() -> Path:
    """
    Get the default aesync data directory.

    Returns ~/.aesync or $AESYNC_DATA_DIR if set.
    Creates the directory if it doesn't exist.
    """
    env_path = os.getenv("AESYNC_DATA_DIR")
    data_dir = Path(env_path) if env_path else Path.home() / ".aesync"

    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_config_path() -> Path:
    """Get the path to the config file ($AESYNC_CONFIG_FILE wins over the data dir)."""
    env_path = os.environ.get("AESYNC_CONFIG_FILE")
    if env_path:
        return Path(env_path)

    data_dir_env = os.environ.get("AESYNC_DATA_DIR")
    data_dir = Path(data_dir_env) if data_dir_env else Path.home() / ".aesync"
    return data_dir / "config.toml"
