# This file defines runtime settings for the API layer in one place.
# It exists so pooling, token lifetime, pagination, CORS, and rate limits can be configured without code edits.
# The config loader reads environment variables and applies safe defaults for local development.
# It also rejects short signing secrets and non-positive sizes before the app starts serving.

from __future__ import annotations

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.common.settings import MIN_JWT_SECRET_LENGTH, load_settings

DEVELOPMENT_ORIGINS: tuple[str, ...] = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)


class ApiConfig(BaseModel):
    """Typed API runtime configuration."""

    model_config = ConfigDict(extra="ignore")

    api_name: str = "Milo Lubricantes API"
    api_prefix: str = "/api"
    app_version: str = "1.0.0"
    environment: str = "development"
    database_url: str
    db_pool_size: int = 10
    db_pool_timeout_seconds: int = 30
    db_pool_recycle_seconds: int = 1800
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    token_lifetime_hours: int = 24
    bcrypt_rounds: int = 12
    default_page_size: int = 10
    max_page_size: int = 100
    max_search_length: int = 100
    allowed_origins: list[str] = Field(default_factory=list)
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100
    login_rate_limit_max_requests: int = 5
    enable_rate_limiting: bool = True
    trust_proxy: bool = False
    enable_request_logging: bool = False
    exit_on_fatal_error: bool = True

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("api_prefix must start with '/'.")
        return value.rstrip("/")

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, value: str) -> str:
        if len(value) < MIN_JWT_SECRET_LENGTH:
            raise ValueError(f"jwt_secret must be at least {MIN_JWT_SECRET_LENGTH} characters long.")
        return value

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, value: int) -> int:
        if not 4 <= value <= 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31.")
        return value

    @field_validator(
        "db_pool_size",
        "db_pool_timeout_seconds",
        "db_pool_recycle_seconds",
        "token_lifetime_hours",
        "default_page_size",
        "max_page_size",
        "max_search_length",
        "rate_limit_window_seconds",
        "rate_limit_max_requests",
        "login_rate_limit_max_requests",
    )
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Value must be greater than 0.")
        return value

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def token_lifetime_seconds(self) -> int:
        return self.token_lifetime_hours * 3600


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "y", "on"}:
        return True
    if value in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"{name} must be boolean-like, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_list(name: str, default: list[str] | None = None) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default or [])
    return [item.strip() for item in raw.split(",") if item.strip()]


def _build_allowed_origins(frontend_url: str, environment: str) -> list[str]:
    origins = [frontend_url]
    if environment != "production":
        origins.extend(DEVELOPMENT_ORIGINS)
    origins.extend(_env_list("API_EXTRA_ALLOWED_ORIGINS", []))

    deduplicated: list[str] = []
    for origin in origins:
        if origin and origin not in deduplicated:
            deduplicated.append(origin)
    return deduplicated


def load_api_config(*, load_env: bool = True) -> ApiConfig:
    """Load API configuration from `.env` and process environment."""

    if load_env:
        load_dotenv()

    settings = load_settings(load_env=False)

    config_values: dict[str, object] = {
        "api_name": os.getenv("API_NAME", "Milo Lubricantes API"),
        "api_prefix": os.getenv("API_PREFIX", "/api"),
        "app_version": os.getenv("APP_VERSION", "1.0.0"),
        "environment": settings.ENV,
        "database_url": settings.DATABASE_URL,
        "db_pool_size": _env_int("DB_POOL_SIZE", 10),
        "db_pool_timeout_seconds": _env_int("DB_POOL_TIMEOUT_SECONDS", 30),
        "db_pool_recycle_seconds": _env_int("DB_POOL_RECYCLE_SECONDS", 1800),
        "jwt_secret": settings.JWT_SECRET,
        "token_lifetime_hours": _env_int("JWT_EXPIRES_HOURS", 24),
        "bcrypt_rounds": _env_int("BCRYPT_ROUNDS", 12),
        "default_page_size": _env_int("API_DEFAULT_PAGE_SIZE", 10),
        "max_page_size": _env_int("API_MAX_PAGE_SIZE", 100),
        "allowed_origins": _build_allowed_origins(settings.FRONTEND_URL, settings.ENV),
        "rate_limit_window_seconds": _env_int("RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
        "rate_limit_max_requests": _env_int("RATE_LIMIT_MAX_REQUESTS", 100),
        "login_rate_limit_max_requests": _env_int("LOGIN_RATE_LIMIT_MAX_REQUESTS", 5),
        "enable_rate_limiting": _env_bool("API_ENABLE_RATE_LIMITING", True),
        "trust_proxy": _env_bool("API_TRUST_PROXY", settings.ENV == "production"),
        "enable_request_logging": _env_bool("API_ENABLE_REQUEST_LOGGING", False),
        "exit_on_fatal_error": _env_bool("API_EXIT_ON_FATAL_ERROR", True),
    }

    return ApiConfig.model_validate(config_values)


@lru_cache(maxsize=1)
def get_api_config() -> ApiConfig:
    """Cached accessor for API config."""

    return load_api_config()
