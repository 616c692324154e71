"""Configuration management for codeflow.

Loads settings from a YAML configuration file with environment variable
overrides (``CODEFLOW_`` prefix, ``__`` between nested keys). Supports
.env files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/codeflow.yaml")


class ServerConfig(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3001, ge=1, le=65535)
    websocket_path: str = Field(default="/terminal", pattern=r"^/")


class TerminalConfig(BaseModel):
    shell_name: str = Field(default="bash", description="Shell name reported to clients")
    default_cwd: str | None = Field(
        default=None, description="Directory for sessions created without a valid cwd (default: $HOME)"
    )
    banner_enabled: bool = Field(default=True)
    banner_delay: float = Field(default=0.1, ge=0, description="Seconds between 'created' and the banner")
    forward_interrupt: bool = Field(
        default=False, description="Send SIGINT to the running command on Ctrl-C"
    )
    extra_env: dict[str, str] = Field(default_factory=dict)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the codeflow terminal server.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "CODEFLOW_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    terminal: TerminalConfig = Field(default_factory=TerminalConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs; env must win over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data: dict[str, Any] = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
