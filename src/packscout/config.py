"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (PACKSCOUT__REGISTRY__DEFAULT_URL=https://...)
  2. packscout.yaml         (searched in cwd, then the platform config dir)
  3. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("packscout")
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "cache.db")

DEFAULT_REGISTRY_URL = "https://packagist.org"


def _find_config_file() -> str | None:
    """Return the path of the first packscout.yaml found, or None."""
    candidates = [
        Path("packscout.yaml"),
        Path(platformdirs.user_config_dir("packscout")) / "packscout.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class RegistrySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    default_url: str = DEFAULT_REGISTRY_URL
    shard_concurrency: int = 5


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    db_path: str = _DEFAULT_DB_PATH
    shard_ttl_minutes: int = 1440
    package_ttl_minutes: int = 10
    cleanup_interval_hours: int = 6


class HttpSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timeout_seconds: float = 30.0
    user_agent: str = "packscout"


class HostRule(BaseModel):
    """Credentials applied to requests whose host matches ``match_host``."""

    model_config = ConfigDict(extra="forbid")

    match_host: str
    host_type: str | None = None
    username: str | None = None
    password: str | None = None
    token: str | None = None


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: PACKSCOUT__CACHE__DB_PATH=/tmp/x.db
        env_prefix="PACKSCOUT__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    data_dir: str = _DEFAULT_DATA_DIR
    registry: RegistrySettings = RegistrySettings()
    cache: CacheSettings = CacheSettings()
    http: HttpSettings = HttpSettings()
    host_rules: list[HostRule] = []
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
