"""
Configuration commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from aesync.cli import app
from aesync.cli_common import setup_logging
from aesync.settings import ensure_config_file


@app.command("init-config")
def init_config(
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", help="Data directory (default: ~/.aesync or $AESYNC_DATA_DIR)"),
    ] = None,
) -> None:
    """Write a commented config.toml template if none exists."""
    setup_logging()
    config_path = ensure_config_file(data_dir)
    typer.echo(f"Config file: {config_path}")
