from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from gemini_gateway.constants import (
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_MAX_AGE,
    DEFAULT_CHAT_MODEL,
    DEFAULT_EMBEDDINGS_MODEL,
    DEFAULT_SAFETY_THRESHOLD,
    GEMINI_API_BASE_URL,
    GEMINI_API_VERSION,
    HARM_CATEGORIES,
)

logger = logging.getLogger(__name__)


def _to_int(value: str, fallback: int | None) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def _to_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


class LogLevel(str, Enum):
    """Log levels for configuration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ConfigModel(BaseModel):
    """Base for configuration sections; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")


class SafetySetting(ConfigModel):
    """One harm-category threshold sent with every generation request."""

    category: str
    threshold: str = DEFAULT_SAFETY_THRESHOLD


def _default_safety_settings() -> list[SafetySetting]:
    return [SafetySetting(category=category) for category in HARM_CATEGORIES]


class AuthConfig(ConfigModel):
    """Inbound authentication."""

    master_api_key: str | None = None


class RelayConfig(ConfigModel):
    """The intermediary every outbound call is sent through."""

    url: str | None = None
    secret: str | None = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("Relay URL must start with http:// or https://")
        return v

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.secret)


class GeminiConfig(ConfigModel):
    """Upstream provider settings."""

    api_key: str | None = None
    api_base_url: str = GEMINI_API_BASE_URL
    api_version: str = GEMINI_API_VERSION
    default_chat_model: str = DEFAULT_CHAT_MODEL
    default_embeddings_model: str = DEFAULT_EMBEDDINGS_MODEL
    safety_settings: list[SafetySetting] = Field(
        default_factory=_default_safety_settings
    )
    # Unset means remote images are buffered whatever their size
    max_image_bytes: int | None = None

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("API base URL must start with http:// or https://")
        return v.rstrip("/")


class CORSConfig(ConfigModel):
    """Cross-origin headers stamped on every response."""

    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    allow_methods: list[str] = Field(default_factory=lambda: list(CORS_ALLOW_METHODS))
    allow_headers: list[str] = Field(default_factory=lambda: list(CORS_ALLOW_HEADERS))
    max_age: int | None = None
    # Echo the caller's Origin instead of "*" and reflect requested headers
    echo_origin: bool = False


class PassthroughConfig(ConfigModel):
    """Host-based fallback proxy settings."""

    default_upstream_host: str | None = None
    # Provider key injected as a bearer token, keyed by target host
    api_keys: dict[str, str] = Field(default_factory=dict)


class LoggingConfig(ConfigModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    log_file: str | None = None
    redact_secrets: bool = True


class AppConfig(ConfigModel):
    """Complete application configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    proxy_timeout: int = 120

    auth: AuthConfig = Field(default_factory=AuthConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    cors: CORSConfig = Field(default_factory=CORSConfig)
    passthrough: PassthroughConfig = Field(default_factory=PassthroughConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, *, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Create AppConfig from environment variables."""
        env = os.environ if environ is None else environ
        return cls.model_validate(_env_overrides(env))

    def secrets(self) -> list[str]:
        """Return every configured secret value, for log redaction."""
        values = [
            self.auth.master_api_key,
            self.relay.secret,
            self.gemini.api_key,
            *self.passthrough.api_keys.values(),
        ]
        return [value for value in values if value]


# (environment variable, dotted config path, transform)
_ENV_FIELDS: tuple[tuple[str, str, Callable[[str], Any] | None], ...] = (
    ("APP_HOST", "host", None),
    ("APP_PORT", "port", lambda value: _to_int(value, 8000)),
    ("PROXY_TIMEOUT", "proxy_timeout", lambda value: _to_int(value, 120)),
    ("MASTER_API_KEY", "auth.master_api_key", None),
    ("GCP_PROXY_URL", "relay.url", None),
    ("NGINX_INTERNAL_SECRET", "relay.secret", None),
    ("GEMINI_API_KEY", "gemini.api_key", None),
    # GOOGLE_API_KEY wins when both are set
    ("GOOGLE_API_KEY", "gemini.api_key", None),
    ("GEMINI_API_BASE_URL", "gemini.api_base_url", None),
    ("DEFAULT_CHAT_MODEL", "gemini.default_chat_model", None),
    ("DEFAULT_EMBEDDINGS_MODEL", "gemini.default_embeddings_model", None),
    ("MAX_IMAGE_BYTES", "gemini.max_image_bytes", lambda value: _to_int(value, None)),
    ("DEFAULT_UPSTREAM_HOST", "passthrough.default_upstream_host", None),
    ("LOG_LEVEL", "logging.level", lambda value: value.strip().upper()),
    ("LOG_FILE", "logging.log_file", None),
    ("REDACT_SECRETS", "logging.redact_secrets", _to_bool),
)

# Provider keys the passthrough proxy injects, by target host
_PASSTHROUGH_KEY_ENV: tuple[tuple[str, str], ...] = (
    ("OPENAI_API_KEY", "api.openai.com"),
    ("GEMINI_API_KEY", "generativelanguage.googleapis.com"),
)


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect the settings explicitly present in *env* as a nested dict."""
    overrides: dict[str, Any] = {}
    for name, path, transform in _ENV_FIELDS:
        raw_value = env.get(name)
        if raw_value is None or raw_value == "":
            continue
        value = transform(raw_value) if transform is not None else raw_value
        _set_by_path(overrides, path, value)

    passthrough_keys = {
        host: env[name] for name, host in _PASSTHROUGH_KEY_ENV if env.get(name)
    }
    if passthrough_keys:
        _set_by_path(overrides, "passthrough.api_keys", passthrough_keys)
    return overrides


def _merge_dicts(d1: dict[str, Any], d2: dict[str, Any]) -> dict[str, Any]:
    for k, v in d2.items():
        if k in d1 and isinstance(d1[k], dict) and isinstance(v, dict):
            _merge_dicts(d1[k], v)
        else:
            d1[k] = v
    return d1


def _set_by_path(target: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    current: dict[str, Any] = target
    for key in parts[:-1]:
        current = current.setdefault(key, {})
    current[parts[-1]] = value


def load_config(
    config_path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """
    Load configuration from a YAML file and the environment.

    Environment variables override values from the file.

    Args:
        config_path: Optional path to a YAML configuration file
        environ: Environment mapping, defaults to os.environ

    Returns:
        AppConfig instance
    """
    env = os.environ if environ is None else environ
    config_data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            logger.warning("Configuration file not found: %s", config_path)
        else:
            if path.suffix.lower() not in {".yaml", ".yml"}:
                raise ValueError(
                    f"Unsupported configuration file format: {path.suffix}. Use YAML (.yaml/.yml)."
                )
            with path.open(encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
            if not isinstance(file_config, dict):
                raise ValueError(
                    f"Configuration file {config_path} must contain a mapping"
                )
            _merge_dicts(config_data, file_config)

    _merge_dicts(config_data, _env_overrides(env))
    return AppConfig.model_validate(config_data)
