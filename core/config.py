"""Configuration models and loading."""

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from core.exceptions import ConfigurationError

CONFIG_DIR = Path.home() / ".config" / "openai-key-proxy"
CONFIG_FILE = CONFIG_DIR / "config.json"

# Environment variable -> (section, field)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SERVICE_TOKEN": ("auth", "service_token"),
    "OPENAI_API_KEY": ("upstream", "api_key"),
    "UPSTREAM_BASE_URL": ("upstream", "base_url"),
    "BIND_HOST": ("proxy", "host"),
    "BIND_PORT": ("proxy", "port"),
    "TLS_CERT_PATH": ("proxy", "tls_cert_path"),
    "TLS_KEY_PATH": ("proxy", "tls_key_path"),
}


class ProxySettings(BaseModel, frozen=True):
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    tls_cert_path: str | None = None
    tls_key_path: str | None = None

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_cert_path and self.tls_key_path)


class UpstreamSettings(BaseModel, frozen=True):
    base_url: str = "https://api.openai.com"
    api_key: str = ""
    max_idle_connections: int = 8
    timeout: float = 300.0


class AuthSettings(BaseModel, frozen=True):
    service_token: str = ""


class LimitsSettings(BaseModel, frozen=True):
    max_body_size: int = 50 * 1024 * 1024  # 50MB
    keep_alive_timeout: int = 5


class Config(BaseModel, frozen=True):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)


def load_config(environ: dict[str, str] | None = None) -> Config:
    """Load configuration from JSON file, then apply environment overrides."""
    data = _read_config_file()
    return apply_env_overrides(data, os.environ if environ is None else environ)


def apply_env_overrides(data: dict, environ) -> Config:
    """Merge environment variables over file data and validate the result."""
    data = {
        section: dict(values) if isinstance(values, dict) else values
        for section, values in data.items()
    }
    for env_name, (section, field) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            data.setdefault(section, {})[field] = value
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _read_config_file() -> dict:
    if not CONFIG_FILE.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        CONFIG_FILE.write_text(Config().model_dump_json(indent=2))
        return {}

    try:
        data = json.loads(CONFIG_FILE.read_text())
        Config.model_validate(data)
        return data
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = CONFIG_FILE.with_suffix(".json.bak")
        CONFIG_FILE.rename(backup)
        CONFIG_FILE.write_text(Config().model_dump_json(indent=2))
        return {}
