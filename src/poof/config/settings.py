"""Configuration management for poof.

Loads settings from a YAML configuration file with environment variable
overrides. Supports .env files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/poof.yaml")


class AutomationConfig(BaseModel):
    terminal_app: str = Field(default="Terminal", description="Scriptable terminal application")
    script_timeout: float = Field(default=5.0, gt=0)
    permission_check_timeout: float = Field(default=3.0, gt=0)
    window_warmup_delay: float = Field(default=0.5, ge=0)
    capture_timeout: float = Field(default=10.0, gt=0)


class RegistryConfig(BaseModel):
    binary: str = Field(default="zmx", description="Session manager executable")
    command_timeout: float = Field(default=5.0, gt=0)


class PollingConfig(BaseModel):
    poll_interval_ms: int = Field(default=100, gt=0)
    default_timeout_ms: int = Field(default=5000, ge=0)
    default_stable_ms: int = Field(default=500, ge=0)
    restart_settle_ms: int = Field(default=500, ge=0)
    session_prefix: str = Field(default="poof", min_length=1)


class ScreenshotConfig(BaseModel):
    format: Literal["png", "jpeg"] = Field(default="png")
    max_dimension: int | None = Field(default=None, gt=0)
    jpeg_quality: int = Field(default=85, ge=1, le=100)


class ServerConfig(BaseModel):
    name: str = Field(default="poof-mcp")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for poof.

    Loads from YAML file and supports environment variable overrides,
    e.g. ``POOF_REGISTRY__BINARY=/opt/bin/zmx``.
    """

    model_config = {
        "env_prefix": "POOF_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    automation: AutomationConfig = Field(default_factory=AutomationConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    screenshot: ScreenshotConfig = Field(default_factory=ScreenshotConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Values from the YAML file are passed to Settings as init arguments,
    so they win over POOF_* environment variables, which in turn win
    over .env entries and defaults.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.debug("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
