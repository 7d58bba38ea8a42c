# This file tests the API health endpoint.
# It exists to validate the operational contract used by orchestration and monitoring.
# The tests confirm request IDs, version metadata, and database reachability are always returned.

from __future__ import annotations

from tests.api.support import FakeDBClient, api_test_client, build_test_config


def test_health_endpoint_returns_expected_fields() -> None:
    config = build_test_config()
    with api_test_client(config=config, db_client=FakeDBClient()) as client:
        response = client.get("/api/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["status"] == "ok"
    assert payload["environment"] == "test"
    assert payload["version"] == config.app_version
    assert payload["database"] == "reachable"
    assert payload["uptime_seconds"] >= 0
    assert payload["request_id"] == response.headers["x-request-id"]
    assert "timestamp" in payload


def test_health_endpoint_reports_degraded_database() -> None:
    with api_test_client(db_client=FakeDBClient(connected=False)) as client:
        response = client.get("/api/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["database"] == "unreachable"


def test_health_endpoint_does_not_require_token() -> None:
    with api_test_client() as client:
        response = client.get("/api/health", headers={"x-request-id": "req-123"})

    assert response.status_code == 200
    assert response.headers["x-request-id"] == "req-123"
    assert response.json()["request_id"] == "req-123"
