"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (ADMINBOARD__SERVER__PORT=9090)
  2. adminboard.yaml        (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional — all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir("adminboard")


def _find_config_file() -> str | None:
    """Return the path of the first adminboard.yaml found, or None."""
    candidates = [
        Path("adminboard.yaml"),
        Path(_DEFAULT_CONFIG_DIR) / "adminboard.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ApiSettings(BaseModel):
    base_url: str = "https://dummyjson.com"
    timeout_seconds: float = 10.0


class AuthSettings(BaseModel):
    # Empty means "generate one at startup"; sessions then do not survive restarts.
    secret: str = ""
    expires_in_mins: int = Field(default=60, gt=0)
    cookie_name: str = "adminboard_session"


class CollectionSettings(BaseModel):
    users_page_size: int = Field(default=10, gt=0)
    products_page_size: int = Field(default=12, gt=0)
    search_debounce_ms: int = Field(default=400, ge=0)
    # None keeps every fetched page for the whole session.
    cache_capacity: int | None = Field(default=None, gt=0)


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8080


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: ADMINBOARD__AUTH__SECRET=...
        env_prefix="ADMINBOARD__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    api: ApiSettings = ApiSettings()
    auth: AuthSettings = AuthSettings()
    collections: CollectionSettings = CollectionSettings()
    server: ServerSettings = ServerSettings()
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
