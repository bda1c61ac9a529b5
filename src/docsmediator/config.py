"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (DOCSMEDIATOR__COMPLETION__API_KEY=...)
  2. docsmediator.yaml      (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional. The only setting without a usable default is
``completion.api_key``; it is checked when the first completion is requested,
not at startup, so the diagnostic routes work without it.
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


def _find_config_file() -> str | None:
    """Return the path of the first docsmediator.yaml found, or None."""
    candidates = [
        Path("docsmediator.yaml"),
        Path(platformdirs.user_config_dir("docsmediator")) / "docsmediator.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    # ["*"] allows any origin; empty list emits no CORS allow-origin header
    allowed_origins: list[str] = []


class DocsSettings(BaseModel):
    # An empty URL disables that transport
    rest_url: str = "https://context7.com/api/v1"
    rpc_url: str = "https://mcp.context7.com/mcp"
    api_key: str | None = None
    format: Literal["txt", "json"] = "txt"
    token_budget: int = Field(default=10000, ge=1)
    timeout_seconds: float = Field(default=20.0, gt=0)


class CompletionSettings(BaseModel):
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-2.5-flash"
    api_key: str | None = None
    timeout_seconds: float = Field(default=20.0, gt=0)


class CacheSettings(BaseModel):
    ttl_seconds: float = Field(default=3600.0, ge=0)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: DOCSMEDIATOR__SERVER__PORT=9090
        env_prefix="DOCSMEDIATOR__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    docs: DocsSettings = DocsSettings()
    completion: CompletionSettings = CompletionSettings()
    cache: CacheSettings = CacheSettings()
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
            # dotenv and file secrets are not read
        )
