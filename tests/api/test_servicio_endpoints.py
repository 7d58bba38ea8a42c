# This file tests service-record endpoints: aggregate writes, listings, and statistics.
# It exists to confirm payloads reach the aggregate writer intact and static routes win over `/{id}`.

from __future__ import annotations

from typing import Any

from src.api.error_handlers import NotFound, ValidationError
from src.api.schemas.servicio_schemas import ServicioInput
from src.api.services.servicio_service import validate_servicio_input
from tests.api.support import api_test_client, auth_headers

VALID_PAYLOAD: dict[str, Any] = {
    "cliente_id": 1,
    "vehiculo_id": 2,
    "sucursal_id": 3,
    "empleados": [4, 5],
    "descripcion": "Cambio de aceite",
    "precio_referencia": 15500.5,
    "items": [
        {
            "tipo_servicio_id": 1,
            "descripcion": "Aceite 10W40",
            "productos": [{"nombre": "Filtro de aceite", "es_nuestro": True}],
        }
    ],
}


class FakeServicioService:
    def __init__(self) -> None:
        self.created: list[ServicioInput] = []
        self.updated: list[tuple[int, ServicioInput]] = []
        self.deleted: list[int] = []

    def _validate(self, payload: ServicioInput) -> None:
        errors = validate_servicio_input(payload)
        if errors:
            raise ValidationError.for_fields(errors)

    def create_servicio(self, payload: ServicioInput) -> dict[str, Any]:
        self._validate(payload)
        self.created.append(payload)
        return {"id": 10, "numero": "SERV-00010", "items": [item.model_dump() for item in payload.items or []]}

    def update_servicio(self, servicio_id: int, payload: ServicioInput) -> dict[str, Any]:
        if servicio_id == 404:
            raise NotFound(error_code="SERVICE_NOT_FOUND", message="Servicio no encontrado")
        self._validate(payload)
        self.updated.append((servicio_id, payload))
        return {"id": servicio_id, "numero": "SERV-00001"}

    def delete_servicio(self, servicio_id: int) -> None:
        self.deleted.append(servicio_id)

    def get_servicio(self, servicio_id: int) -> dict[str, Any]:
        raise NotFound(error_code="SERVICE_NOT_FOUND", message="Servicio no encontrado")

    def get_estadisticas(self) -> dict[str, int]:
        return {"total": 12, "servicios_hoy": 1, "servicios_semana": 4, "servicios_mes": 9}

    def list_by_patente(self, patente: str) -> list[dict[str, Any]]:
        return [{"id": 1, "patente": patente}]

    def list_servicios(self, **kwargs: Any) -> dict[str, Any]:
        return {"rows": [{"id": 1, "numero": "SERV-00001"}], "total_count": 1}


def test_create_servicio_returns_created_aggregate() -> None:
    service = FakeServicioService()
    with api_test_client(servicio_service=service) as client:
        response = client.post("/api/servicios", json=VALID_PAYLOAD, headers=auth_headers("employee-token"))

    assert response.status_code == 201
    payload = response.json()
    assert payload["data"]["numero"] == "SERV-00010"
    written = service.created[0]
    assert written.empleados == [4, 5]
    assert written.items is not None
    assert written.items[0].productos[0].es_nuestro is True


def test_create_servicio_reports_every_missing_reference() -> None:
    with api_test_client(servicio_service=FakeServicioService()) as client:
        response = client.post(
            "/api/servicios",
            json={"items": [{"descripcion": "sin tipo"}]},
            headers=auth_headers(),
        )

    assert response.status_code == 400
    fields = {detail["field"] for detail in response.json()["error"]["details"]}
    assert fields == {"cliente_id", "vehiculo_id", "sucursal_id", "items.0.tipo_servicio_id"}


def test_create_servicio_rejects_negative_price() -> None:
    with api_test_client(servicio_service=FakeServicioService()) as client:
        response = client.post(
            "/api/servicios",
            json={**VALID_PAYLOAD, "precio_referencia": -1},
            headers=auth_headers(),
        )

    assert response.status_code == 400
    assert response.json()["error"]["details"][0]["field"] == "precio_referencia"


def test_update_missing_servicio_returns_not_found() -> None:
    with api_test_client(servicio_service=FakeServicioService()) as client:
        response = client.put("/api/servicios/404", json=VALID_PAYLOAD, headers=auth_headers())

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SERVICE_NOT_FOUND"


def test_delete_servicio_reports_hard_delete() -> None:
    service = FakeServicioService()
    with api_test_client(servicio_service=service) as client:
        response = client.delete("/api/servicios/9", headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["message"] == "Servicio eliminado completamente"
    assert service.deleted == [9]


def test_estadisticas_route_is_not_shadowed_by_id_route() -> None:
    with api_test_client(servicio_service=FakeServicioService()) as client:
        stats = client.get("/api/servicios/estadisticas", headers=auth_headers())
        by_plate = client.get("/api/servicios/vehiculo/AB123CD", headers=auth_headers())

    assert stats.status_code == 200
    assert stats.json()["data"] == {"total": 12, "servicios_hoy": 1, "servicios_semana": 4, "servicios_mes": 9}
    assert by_plate.json()["data"][0]["patente"] == "AB123CD"


def test_list_servicios_uses_default_page_size() -> None:
    with api_test_client(servicio_service=FakeServicioService()) as client:
        response = client.get("/api/servicios", headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["pagination"] == {"page": 1, "limit": 2, "total": 1, "total_pages": 1}
