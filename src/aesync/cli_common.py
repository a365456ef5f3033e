"""
Common CLI setup: logging and settings resolution.
"""

from __future__ import annotations

import sys

from loguru import logger

from aesync.settings import AeSyncSettings, get_settings, reset_settings


def setup_logging(level: str = "INFO") -> None:
    """
    Configure loguru logging with consistent format.

    Args:
        level: Log level (TRACE, DEBUG, INFO, WARNING, ERROR)
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        level=level.upper(),
        colorize=True,
    )


def setup_cli(log_level: str | None = None, node_url: str | None = None) -> AeSyncSettings:
    """
    Reset the settings cache, configure logging and return settings.

    CLI options take priority over environment and config file values.
    """
    reset_settings()
    settings = get_settings()
    if node_url is not None:
        settings.node.url = node_url

    setup_logging(log_level if log_level is not None else settings.logging.level)
    return settings
