"""Configuration system for ytscribe.

Layered config loading (lowest to highest priority):
1. config/default.toml (shipped with package)
2. ~/.config/ytscribe/config.toml (user-level)
3. ./ytscribe.toml (project-level)
4. Environment variables (YTSCRIBE_API__API_KEY, etc.)
5. CLI flags
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_ROOT = Path(__file__).resolve().parent.parent.parent.parent
_DEFAULT_CONFIG = _PACKAGE_ROOT / "config" / "default.toml"
_USER_CONFIG = Path.home() / ".config" / "ytscribe" / "config.toml"
_PROJECT_CONFIG = Path("ytscribe.toml")

ENVIRONMENTS = ("production", "local")


class ApiConfig(BaseModel):
    environment: str = "production"  # "production" or "local"
    production_url: str = "https://api.ytscribe.app"
    local_url: str = "http://localhost:8000"
    api_key: str | None = None
    auth_prefix: str = "/api/v1/auth"
    timeout: float = 60.0
    probe_timeout: float = 5.0

    def base_url_for(self, environment: str | None = None) -> str:
        """Return the base URL for an environment, defaulting to the active one."""
        env = environment or self.environment
        if env not in ENVIRONMENTS:
            raise ValueError(f"Unknown API environment: {env!r}. Choose from {ENVIRONMENTS}.")
        url = self.local_url if env == "local" else self.production_url
        return url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self.base_url_for()

    @property
    def api_key_preview(self) -> str:
        """Masked key for display, e.g. "ab***"."""
        return f"{self.api_key[:2]}***" if self.api_key else "Not set"


class RetryConfig(BaseModel):
    max_retries: int = 3
    base_delay_ms: int = 2000
    factor: int = 2
    empty_result_retries: int = 2

    def delay_for(self, attempt: int) -> int:
        """Backoff delay in milliseconds after the given zero-based attempt."""
        return self.base_delay_ms * self.factor**attempt


class AuthConfig(BaseModel):
    expiry_buffer_seconds: int = 60


class ScribeConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="YTSCRIBE_",
        env_nested_delimiter="__",
    )

    api: ApiConfig = ApiConfig()
    retry: RetryConfig = RetryConfig()
    auth: AuthConfig = AuthConfig()
    state_dir: Path = Path.home() / ".local" / "state" / "ytscribe"

    @property
    def state_file(self) -> Path:
        """Persisted client state (credentials, cached user, environment)."""
        return self.state_dir / "state.json"


def _load_toml(path: Path) -> dict:
    """Load a TOML file if it exists, return empty dict otherwise."""
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(**cli_overrides: object) -> ScribeConfig:
    """Load configuration from all layers and merge.

    Args:
        **cli_overrides: Direct overrides from CLI flags. Keys can be
            dot-separated (e.g. api.environment="local").
    """
    # Layer 1-3: TOML files
    config_data: dict = {}
    for path in (_DEFAULT_CONFIG, _USER_CONFIG, _PROJECT_CONFIG):
        layer = _load_toml(path)
        config_data = _deep_merge(config_data, layer)

    # Apply CLI overrides (dot-separated keys)
    for key, value in cli_overrides.items():
        if value is None:
            continue
        parts = key.split(".")
        target = config_data
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value

    # Layer 4: env vars are handled by Pydantic BaseSettings
    return ScribeConfig(**config_data)
