"""
Shared test configuration.
Environment defaults are applied at import time because `src.api.app` builds its module-level app on import.
These tests are executed by `pytest` locally and in CI and should remain deterministic.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

TEST_ENV_DEFAULTS: dict[str, str] = {
    "ENV": "test",
    "LOG_LEVEL": "INFO",
    "DATABASE_URL": "sqlite+pysqlite:///:memory:",
    "JWT_SECRET": "test-secret-key-with-at-least-32-characters",
    "FRONTEND_URL": "http://localhost:3000",
    "BCRYPT_ROUNDS": "4",
    "API_EXIT_ON_FATAL_ERROR": "false",
}

for _key, _value in TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _value)


@pytest.fixture(autouse=True)
def base_test_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Ensure required environment variables are present and config caches are fresh."""

    from src.api.api_config import get_api_config
    from src.common.settings import get_settings

    for key, value in TEST_ENV_DEFAULTS.items():
        if os.getenv(key) is None:
            monkeypatch.setenv(key, value)

    get_settings.cache_clear()
    get_api_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_api_config.cache_clear()
