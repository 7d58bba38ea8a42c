# This file tests authentication endpoints and the bearer-token boundary.
# It exists to confirm login, logout, profile, and password change keep their envelope contracts.
# Token failures must map onto the documented 401 error codes.

from __future__ import annotations

from src.api.authorization import AuthenticatedUser
from src.api.error_handlers import ExpiredToken, InvalidToken
from tests.api.support import ADMIN_USER, FakeAuthService, api_test_client, auth_headers, build_test_config


class ExpiringAuthService(FakeAuthService):
    def verify(self, token: str) -> AuthenticatedUser:
        if token == "expired":
            raise ExpiredToken()
        if token == "garbage":
            raise InvalidToken()
        return super().verify(token)


def test_login_returns_user_and_token() -> None:
    auth = FakeAuthService()
    with api_test_client(auth_service=auth) as client:
        response = client.post(
            "/api/auth/login",
            json={"email": ADMIN_USER.email, "password": "secret123"},
            headers={"user-agent": "pytest-agent", "x-forwarded-for": "10.0.0.7"},
        )

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["message"] == "Login exitoso"
    assert payload["data"]["token"] == "admin-token"
    assert payload["data"]["user"]["role"] == "ADMIN"
    assert "password" not in payload["data"]["user"]
    assert auth.login_calls[0]["ip_address"] == "testclient"
    assert auth.login_calls[0]["user_agent"] == "pytest-agent"


def test_login_records_proxy_appended_address_when_proxy_is_trusted() -> None:
    auth = FakeAuthService()
    with api_test_client(config=build_test_config(trust_proxy=True), auth_service=auth) as client:
        response = client.post(
            "/api/auth/login",
            json={"email": ADMIN_USER.email, "password": "secret123"},
            headers={"x-forwarded-for": "6.6.6.6, 10.0.0.7"},
        )

    assert response.status_code == 200
    assert auth.login_calls[0]["ip_address"] == "10.0.0.7"


def test_login_with_unknown_address_in_reserved_domain_is_invalid_credentials() -> None:
    with api_test_client() as client:
        response = client.post("/api/auth/login", json={"email": "admin@milo.test", "password": "secret123"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_login_with_wrong_password_is_rejected() -> None:
    with api_test_client() as client:
        response = client.post("/api/auth/login", json={"email": ADMIN_USER.email, "password": "nope"})

    assert response.status_code == 401
    payload = response.json()
    assert payload["success"] is False
    assert payload["error"]["code"] == "INVALID_CREDENTIALS"
    assert payload["error"]["request_id"]


def test_login_validates_payload_field_by_field() -> None:
    with api_test_client() as client:
        response = client.post("/api/auth/login", json={"email": "not-an-email"})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    fields = {detail["field"] for detail in error["details"]}
    assert fields == {"email", "password"}


def test_protected_route_without_token_returns_no_token() -> None:
    with api_test_client() as client:
        response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "NO_TOKEN"


def test_malformed_authorization_header_returns_no_token() -> None:
    with api_test_client() as client:
        response = client.get("/api/auth/me", headers={"Authorization": "Token abc"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "NO_TOKEN"


def test_token_failures_map_to_distinct_codes() -> None:
    with api_test_client(auth_service=ExpiringAuthService()) as client:
        expired = client.get("/api/auth/me", headers=auth_headers("expired"))
        invalid = client.get("/api/auth/me", headers=auth_headers("garbage"))
        revoked = client.get("/api/auth/me", headers=auth_headers("unknown-token"))

    assert expired.status_code == 401
    assert expired.json()["error"]["code"] == "TOKEN_EXPIRED"
    assert invalid.json()["error"]["code"] == "INVALID_TOKEN"
    assert revoked.json()["error"]["code"] == "SESSION_EXPIRED"


def test_me_and_profile_return_current_user() -> None:
    with api_test_client() as client:
        me = client.get("/api/auth/me", headers=auth_headers("employee-token"))
        profile = client.get("/api/auth/profile", headers=auth_headers("employee-token"))

    assert me.status_code == 200
    assert me.json()["data"]["email"] == "empleado@milo.com"
    assert profile.json()["data"]["role"] == "EMPLEADO"


def test_logout_revokes_presented_token() -> None:
    auth = FakeAuthService()
    with api_test_client(auth_service=auth) as client:
        response = client.post("/api/auth/logout", headers=auth_headers("admin-token"))

    assert response.status_code == 200
    assert response.json()["message"] == "Logout exitoso"
    assert auth.logged_out == ["admin-token"]


def test_change_password_keeps_current_session() -> None:
    auth = FakeAuthService()
    with api_test_client(auth_service=auth) as client:
        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": "secret123", "newPassword": "newsecret456"},
            headers=auth_headers("admin-token"),
        )

    assert response.status_code == 200
    change = auth.password_changes[0]
    assert change["user_id"] == ADMIN_USER.id
    assert change["new_password"] == "newsecret456"
    assert change["keep_token_hash"] == ADMIN_USER.token_hash


def test_change_password_rejects_short_new_password() -> None:
    with api_test_client() as client:
        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": "secret123", "newPassword": "123"},
            headers=auth_headers("admin-token"),
        )

    assert response.status_code == 400
    assert response.json()["error"]["details"][0]["field"] == "newPassword"


def test_register_requires_admin_role() -> None:
    body = {"nombre": "Nuevo Usuario", "email": "nuevo@milo.com", "password": "secret123", "rol": "EMPLEADO"}
    auth = FakeAuthService()
    with api_test_client(auth_service=auth) as client:
        forbidden = client.post("/api/auth/register", json=body, headers=auth_headers("employee-token"))
        created = client.post("/api/auth/register", json=body, headers=auth_headers("admin-token"))

    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "INSUFFICIENT_PERMISSIONS"
    assert created.status_code == 201
    assert created.json()["data"]["role"] == "EMPLEADO"
    assert len(auth.registered) == 1
