"""
Application settings loaded from environment variables.
It validates the process environment once at startup so a misconfigured deployment fails fast.
Every problem is collected and reported together; secret values are never echoed back.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Final

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError

REQUIRED_ENV_VARS: Final[tuple[str, ...]] = (
    "DATABASE_URL",
    "JWT_SECRET",
)

VALID_ENVIRONMENTS: Final[frozenset[str]] = frozenset({"development", "production", "test"})

MIN_JWT_SECRET_LENGTH: Final[int] = 32


class Settings(BaseModel):
    """Typed runtime configuration."""

    model_config = ConfigDict(extra="ignore")

    ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    PORT: int = 4485
    DATABASE_URL: str
    JWT_SECRET: str
    FRONTEND_URL: str = "http://localhost:3000"

    @property
    def is_development(self) -> bool:
        return self.ENV == "development"


def _collect_problems(environ: dict[str, str]) -> list[str]:
    problems = [f"{key} is required" for key in REQUIRED_ENV_VARS if not environ.get(key)]

    secret = environ.get("JWT_SECRET")
    if secret and len(secret) < MIN_JWT_SECRET_LENGTH:
        problems.append(f"JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters long")

    env_name = environ.get("ENV")
    if env_name and env_name not in VALID_ENVIRONMENTS:
        allowed = ", ".join(sorted(VALID_ENVIRONMENTS))
        problems.append(f"ENV must be one of: {allowed}")
    return problems


def load_settings(*, load_env: bool = True) -> Settings:
    """Load and validate environment settings from `.env` and process environment."""

    if load_env:
        load_dotenv()

    environ = dict(os.environ)
    problems = _collect_problems(environ)
    if problems:
        raise RuntimeError(
            "Environment validation failed: "
            + "; ".join(problems)
            + ". Populate these values in `.env` before starting the application."
        )

    try:
        return Settings.model_validate(environ)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached accessor for application settings."""

    return load_settings()
