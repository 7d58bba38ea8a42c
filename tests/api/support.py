# This file provides shared helpers for API endpoint tests.
# It exists so tests can override service dependencies without touching real databases.
# Each client gets a freshly built app so rate-limit counters never leak between tests.
# Bearer tokens "admin-token" and "employee-token" resolve to fixed users through the fake auth service.

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from fastapi.testclient import TestClient

from src.api.api_config import ApiConfig
from src.api.app import create_app
from src.api.authorization import AuthenticatedUser, Role
from src.api.dependencies import (
    get_auth_service,
    get_cliente_service,
    get_config,
    get_configuracion_service,
    get_database_client,
    get_empleado_service,
    get_servicio_service,
    get_sucursal_service,
    get_tipo_servicio_service,
    get_user_service,
    get_vehiculo_service,
)
from src.api.error_handlers import InvalidCredentials, SessionExpiredOrRevoked

TEST_JWT_SECRET = "test-secret-key-with-at-least-32-characters"

ADMIN_USER = AuthenticatedUser(
    id=1,
    email="admin@milo.com",
    role=Role.ADMIN,
    nombre="Admin Milo",
    token_hash="admin-hash",
)
EMPLOYEE_USER = AuthenticatedUser(
    id=2,
    email="empleado@milo.com",
    role=Role.EMPLOYEE,
    nombre="Empleado Milo",
    token_hash="employee-hash",
)
TOKENS: dict[str, AuthenticatedUser] = {"admin-token": ADMIN_USER, "employee-token": EMPLOYEE_USER}


def build_test_config(
    *,
    environment: str = "test",
    enable_rate_limiting: bool = True,
    rate_limit_max_requests: int = 100,
    login_rate_limit_max_requests: int = 5,
    trust_proxy: bool = False,
) -> ApiConfig:
    """Create deterministic API config for tests."""

    return ApiConfig(
        api_name="Test Milo API",
        api_prefix="/api",
        app_version="0.1.0",
        environment=environment,
        database_url="sqlite+pysqlite:///:memory:",
        jwt_secret=TEST_JWT_SECRET,
        bcrypt_rounds=4,
        default_page_size=2,
        max_page_size=5,
        allowed_origins=[],
        enable_rate_limiting=enable_rate_limiting,
        rate_limit_window_seconds=900,
        rate_limit_max_requests=rate_limit_max_requests,
        login_rate_limit_max_requests=login_rate_limit_max_requests,
        trust_proxy=trust_proxy,
        enable_request_logging=False,
        exit_on_fatal_error=False,
    )


def auth_headers(token: str = "admin-token") -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class FakeDBClient:
    """Simple fake DB dependency for health endpoint tests."""

    def __init__(self, *, connected: bool = True) -> None:
        self._connected = connected

    def can_connect(self) -> bool:
        return self._connected


class FakeAuthService:
    """Resolves the fixed test tokens and records credential operations."""

    def __init__(self) -> None:
        self.logged_out: list[str] = []
        self.password_changes: list[dict[str, Any]] = []
        self.registered: list[dict[str, Any]] = []
        self.login_calls: list[dict[str, Any]] = []

    def verify(self, token: str) -> AuthenticatedUser:
        user = TOKENS.get(token)
        if user is None:
            raise SessionExpiredOrRevoked()
        return user

    def login(self, *, email: str, password: str, **kwargs: Any) -> dict[str, Any]:
        self.login_calls.append({"email": email, **kwargs})
        if email != ADMIN_USER.email or password != "secret123":
            raise InvalidCredentials()
        return {
            "user": self.get_profile(ADMIN_USER.id),
            "token": "admin-token",
            "expires_at": "2026-01-02T00:00:00+00:00",
        }

    def logout(self, token: str) -> None:
        self.logged_out.append(token)

    def get_profile(self, user_id: int) -> dict[str, Any]:
        user = ADMIN_USER if user_id == ADMIN_USER.id else EMPLOYEE_USER
        return {
            "id": user.id,
            "nombre": user.nombre,
            "email": user.email,
            "role": user.role.value,
            "activo": True,
            "creado_en": None,
            "ultimo_login": None,
        }

    def change_password(self, **kwargs: Any) -> int:
        self.password_changes.append(kwargs)
        return 0

    def register(self, **kwargs: Any) -> dict[str, Any]:
        self.registered.append(kwargs)
        return {"id": 10, "nombre": kwargs["nombre"], "email": kwargs["email"], "role": kwargs["rol"].value}


def _provide(value: Any) -> Callable[[], Any]:
    def provider() -> Any:
        return value

    return provider


@contextmanager
def api_test_client(
    *,
    config: ApiConfig | None = None,
    db_client: Any | None = None,
    auth_service: Any | None = None,
    user_service: Any | None = None,
    cliente_service: Any | None = None,
    vehiculo_service: Any | None = None,
    servicio_service: Any | None = None,
    empleado_service: Any | None = None,
    sucursal_service: Any | None = None,
    tipo_servicio_service: Any | None = None,
    configuracion_service: Any | None = None,
    raise_server_exceptions: bool = True,
) -> Iterator[TestClient]:
    """Yield a TestClient over a fresh app with scoped dependency overrides."""

    resolved_config = config or build_test_config()
    app = create_app(resolved_config)

    resolved_db = db_client or FakeDBClient()
    resolved_auth = auth_service or FakeAuthService()
    app.dependency_overrides[get_config] = _provide(resolved_config)
    app.dependency_overrides[get_database_client] = _provide(resolved_db)
    app.dependency_overrides[get_auth_service] = _provide(resolved_auth)

    service_overrides = {
        get_user_service: user_service,
        get_cliente_service: cliente_service,
        get_vehiculo_service: vehiculo_service,
        get_servicio_service: servicio_service,
        get_empleado_service: empleado_service,
        get_sucursal_service: sucursal_service,
        get_tipo_servicio_service: tipo_servicio_service,
        get_configuracion_service: configuracion_service,
    }
    for dependency, service in service_overrides.items():
        if service is not None:
            app.dependency_overrides[dependency] = _provide(service)

    try:
        with TestClient(app, raise_server_exceptions=raise_server_exceptions) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
