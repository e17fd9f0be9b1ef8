"""Time server configuration.

Sources, highest precedence first: init arguments, environment, ``.env``,
YAML config file, defaults. Nested keys use ``__`` in environment names,
e.g. ``MCP_TIME_SERVER__PORT=9000``.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .timeservice import InvalidTimezoneError
from .timeservice.formats import FORMATS
from .timeservice.zones import resolve_timezone

ROOT_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = ROOT_DIR / ".env"
load_dotenv(ENV_FILE, override=False)

CONFIG_FILE_ENV = "MCP_TIME_CONFIG_FILE"
DEFAULT_CONFIG_FILE = ROOT_DIR / "config.yaml"


class ServerSettings(BaseModel):
    name: str = "mcp-server-time"
    version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    graceful_shutdown_timeout: float = Field(default=30.0, gt=0)


class TimeSettings(BaseModel):
    default_timezone: str = "UTC"
    default_format: str = "RFC3339"
    supported_formats: list[str] = Field(default_factory=lambda: list(FORMATS))

    @field_validator("supported_formats")
    @classmethod
    def _known_formats(cls, value: list[str]) -> list[str]:
        unknown = [fmt for fmt in value if fmt not in FORMATS]
        if unknown:
            raise ValueError(f"Unknown formats: {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def _usable_defaults(self) -> "TimeSettings":
        if self.default_format not in self.supported_formats:
            raise ValueError(f"default_format {self.default_format} is not in supported_formats")
        try:
            resolve_timezone(self.default_timezone)
        except InvalidTimezoneError as exc:
            raise ValueError(exc.message) from exc
        return self


class LoggingSettings(BaseModel):
    level: Literal["debug", "info", "warn", "warning", "error", "fatal"] = "info"
    format: Literal["json", "console"] = "json"


class MetricsSettings(BaseModel):
    enabled: bool = True
    port: int = 9090
    path: str = "/metrics"


def config_file() -> Path:
    return Path(os.environ.get(CONFIG_FILE_ENV, str(DEFAULT_CONFIG_FILE)))


class TimeServerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MCP_TIME_",
        env_nested_delimiter="__",
        env_file=str(ENV_FILE),
        extra="ignore",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    time: TimeSettings = Field(default_factory=TimeSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=config_file())
        return init_settings, env_settings, dotenv_settings, yaml_settings

    @property
    def metrics_on_main_port(self) -> bool:
        return self.metrics.enabled and self.metrics.port == self.server.port


@lru_cache(maxsize=1)
def get_settings() -> TimeServerSettings:
    return TimeServerSettings()
