from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

SUPPORTED_SCHEMES = ("memory://", "sqlite:///")


class SettingsError(RuntimeError):
    """Raised when required configuration is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - DATABASE_URL: 'memory://' or 'sqlite:///<path>' (required)
    - JWT_SECRET: secret used to sign session tokens (required)
    - APP_ENV: 'development' (default) or 'production'; production marks cookies Secure
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name, 'INFO' by default
    """

    database_url: str
    jwt_secret: str
    app_env: str = "development"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def backend(self) -> str:
        """Storage backend name derived from the connection string scheme."""
        return self.database_url.split(":", 1)[0]


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _require_env(name: str) -> str:
    value: Optional[str] = os.getenv(name)
    if value is None or not value.strip():
        raise SettingsError(f"{name} must be set")
    return value.strip()


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _validate_database_url(url: str) -> str:
    if not url.startswith(SUPPORTED_SCHEMES):
        raise SettingsError(
            f"Unsupported DATABASE_URL '{url}'; expected one of: {', '.join(SUPPORTED_SCHEMES)}"
        )
    if url.startswith("sqlite:///") and not url[len("sqlite:///"):]:
        raise SettingsError("DATABASE_URL for sqlite must include a file path")
    return url


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return application settings loaded from environment variables.

    The environment is read once per process; call ``get_settings.cache_clear()``
    to force a reload.

    Raises:
        SettingsError: if DATABASE_URL or JWT_SECRET is missing, or DATABASE_URL
            uses an unsupported scheme.
    """
    database_url = _validate_database_url(_require_env("DATABASE_URL"))
    jwt_secret = _require_env("JWT_SECRET")
    app_env = _get_env("APP_ENV", "development").strip().lower()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))
    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()

    return Settings(
        database_url=database_url,
        jwt_secret=jwt_secret,
        app_env=app_env,
        cors_allow_origins=origins,
        log_level=log_level,
    )
