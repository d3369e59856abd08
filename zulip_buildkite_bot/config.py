"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_ENV_VAR = "ZULIP_BUILDKITE_CONFIG"

REQUIRED_FIELDS = (
    "zulip_bot_email",
    "zulip_bot_api_key",
    "zulip_server_url",
    "zulip_stream",
)


class ConfigurationError(ValueError):
    """Mandatory startup configuration is missing or invalid."""


class Settings(BaseSettings):
    """Process-wide configuration, built once at startup and never mutated.

    Each field is read from the environment variable of the same name
    (``ZULIP_BOT_EMAIL``, ``PORT``, ...).
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    zulip_bot_email: str = ""
    zulip_bot_api_key: str = ""
    zulip_server_url: str = ""
    zulip_stream: str = ""
    port: int = 3000
    bind: str = "127.0.0.1"
    webhook_path: str = "/webhook"
    delivery_timeout: float = 10.0
    skip_passed_jobs: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("zulip_server_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("webhook_path")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        return value if value.startswith("/") else f"/{value}"

    @field_validator("delivery_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"delivery_timeout must be positive, got {value}")
        return value

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name).strip()]


def _load_yaml(config_path: str | Path | None) -> dict[str, Any]:
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR)
    if config_path is None:
        return {}

    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file must contain a YAML mapping, got {type(data).__name__}"
        )
    return data


def load_settings(
    config_path: str | Path | None = None,
    *,
    require: bool = True,
    **overrides: Any,
) -> Settings:
    """Build settings from env vars, an optional YAML file and CLI overrides.

    Precedence, highest first: ``overrides`` (command-line flags), the YAML
    file, environment variables, field defaults.  Overrides whose value is
    ``None`` were not given and are skipped.

    Raises ConfigurationError when a mandatory field is missing and
    ``require`` is set, or when the values fail validation.
    """
    data = _load_yaml(config_path)
    data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        settings = Settings(**data)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    if require:
        missing = settings.missing_fields()
        if missing:
            names = ", ".join(name.upper() for name in missing)
            raise ConfigurationError(f"Missing required configuration: {names}")

    return settings
