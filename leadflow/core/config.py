"""Environment-driven settings for the LeadFlow API, read once per process."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from leadflow.core.exceptions import ConfigurationError

load_dotenv()

LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
DATABASE_SCHEMES = frozenset({"sqlite", "postgresql", "postgresql+psycopg2"})
PLACEHOLDER_SECRET = "change_me_jwt_secret"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    try:
        value = int(raw) if raw is not None and raw.strip() else default
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}.") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}.")
    return value


@dataclass(frozen=True)
class Config:
    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    JWT_SECRET: str
    JWT_ACCESS_TTL_MINUTES: int
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str
    AUTO_ASSIGN_ENABLED: bool
    INQUIRY_PREFIX: str
    IMPORT_MAX_ROWS: int
    BULK_ASSIGN_MAX: int

    def __post_init__(self) -> None:
        parsed = urlparse(self.DATABASE_URL)
        if parsed.scheme not in DATABASE_SCHEMES:
            raise ConfigurationError("DATABASE_URL must use sqlite:// or postgresql:// style URL.")
        if parsed.scheme.startswith("postgresql") and not parsed.hostname:
            raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")
        if self.LOG_LEVEL not in LOG_LEVELS:
            raise ConfigurationError(f"LOG_LEVEL must be one of {', '.join(sorted(LOG_LEVELS))}.")
        if not self.INQUIRY_PREFIX.isalnum():
            raise ConfigurationError("INQUIRY_PREFIX must be alphanumeric.")
        if not self.API_PREFIX.startswith("/"):
            raise ConfigurationError("API_PREFIX must start with '/'.")
        if self.is_production and self.JWT_SECRET == PLACEHOLDER_SECRET:
            raise ConfigurationError("Production JWT_SECRET uses the placeholder value.")

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Build and validate settings for `env` (defaults to $ENV, then development)."""
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    production = resolved_env == "production"
    return Config(
        APP_NAME="LeadFlow",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=False if production else _env_flag("DEBUG", default=True),
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./leadflow.db"),
        DB_CONNECTIVITY_REQUIRED=_env_flag("DB_CONNECTIVITY_REQUIRED", default=production),
        JWT_SECRET=os.getenv("JWT_SECRET", PLACEHOLDER_SECRET),
        JWT_ACCESS_TTL_MINUTES=_env_int("JWT_ACCESS_TTL_MINUTES", 60),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1").rstrip("/") or "/api/v1",
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
        AUTO_ASSIGN_ENABLED=_env_flag("AUTO_ASSIGN_ENABLED", default=True),
        INQUIRY_PREFIX=os.getenv("INQUIRY_PREFIX", "INQ").strip().upper(),
        IMPORT_MAX_ROWS=_env_int("IMPORT_MAX_ROWS", 5000),
        BULK_ASSIGN_MAX=_env_int("BULK_ASSIGN_MAX", 500),
    )
