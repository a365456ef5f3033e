"""
Settings management for aesync using pydantic-settings.

Sources, highest priority first:
1. Constructor arguments (CLI options are passed through here)
2. Environment variables
3. TOML config file (~/.aesync/config.toml)
4. Default values

Environment Variable Naming:
    - Use uppercase with double underscore for nested settings
    - Examples: NODE__URL, SYNC__FETCH_CONCURRENCY, LOGGING__LEVEL
    - Maps to TOML sections: NODE__URL -> [node] url
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from aesync.constants import (
    DEFAULT_NODE_URL,
    FETCH_CONCURRENCY,
    MAX_ACCOUNT_INDEX,
    SAFE_REORG_THRESHOLD,
)
from aesync.errors import ConfigError
from aesync.paths import get_config_path, get_default_data_dir


class NodeSettings(BaseModel):
    """Chain node connection configuration."""

    url: str = Field(
        default=DEFAULT_NODE_URL,
        description="Aeternity node public API URL",
    )
    internal_url: str | None = Field(
        default=None,
        description="Node internal API URL used to build unsigned spends (defaults to url)",
    )
    timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="HTTP request timeout in seconds",
    )


class SyncSettings(BaseModel):
    """Discovery and history synchronization tuning."""

    fetch_concurrency: int = Field(
        default=FETCH_CONCURRENCY,
        ge=1,
        description="Block requests in flight per history fetch batch",
    )
    reorg_threshold: int = Field(
        default=SAFE_REORG_THRESHOLD,
        ge=0,
        description="Confirmations after which an operation is treated as final",
    )
    max_account_index: int = Field(
        default=MAX_ACCOUNT_INDEX,
        ge=1,
        description="Number of derivation indices probed during account discovery",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Log level: TRACE, DEBUG, INFO, WARNING, ERROR",
    )


class AeSyncSettings(BaseSettings):
    """Main aesync settings class."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    node: NodeSettings = Field(default_factory=NodeSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source reading the TOML config file, if present."""

    def __init__(self, settings_cls: type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self._config: dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        config_path = get_config_path()

        if not config_path.exists():
            logger.debug(f"Config file not found at {config_path}, using defaults")
            return

        try:
            with open(config_path, "rb") as f:
                self._config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Invalid TOML syntax in config file {config_path}: {e}")
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e

        logger.info(f"Loaded config from {config_path}")

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        value = self._config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._config


def generate_config_template() -> str:
    """Generate a config file with every setting commented out at its default."""
    lines = [
        "# aesync configuration",
        "#",
        "# Settings are commented out by default - uncomment to override.",
        "# Environment variables (e.g. NODE__URL) take priority over this file.",
        "",
    ]

    def add_section(section: str, model_cls: type[BaseModel]) -> None:
        lines.append(f"[{section}]")
        for field_name, field_info in model_cls.model_fields.items():
            if field_info.description:
                lines.append(f"# {field_info.description}")
            default = field_info.default
            if default is None:
                lines.append(f"# {field_name} = ")
            elif isinstance(default, str):
                lines.append(f'# {field_name} = "{default}"')
            else:
                lines.append(f"# {field_name} = {default}")
        lines.append("")

    add_section("node", NodeSettings)
    add_section("sync", SyncSettings)
    add_section("logging", LoggingSettings)
    return "\n".join(lines)


def ensure_config_file(data_dir: Path | None = None) -> Path:
    """Write the config template unless a config file already exists."""
    if data_dir is None:
        data_dir = get_default_data_dir()

    config_path = data_dir / "config.toml"
    if not config_path.exists():
        logger.info(f"Creating config file template at {config_path}")
        data_dir.mkdir(parents=True, exist_ok=True)
        config_path.write_text(generate_config_template())

    return config_path


_settings: AeSyncSettings | None = None


def get_settings(**overrides: Any) -> AeSyncSettings:
    """
    Get the aesync settings instance.

    On first call, loads settings from all sources. Subsequent calls
    return the cached instance unless reset_settings() is called.
    """
    global _settings
    if _settings is None or overrides:
        _settings = AeSyncSettings(**overrides)
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None


__all__ = [
    "AeSyncSettings",
    "NodeSettings",
    "SyncSettings",
    "LoggingSettings",
    "get_settings",
    "reset_settings",
    "generate_config_template",
    "ensure_config_file",
]
