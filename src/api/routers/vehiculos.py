# This file defines vehicle endpoints under the API prefix.
# It exists so vehicle CRUD, per-client listings, and mileage updates share one route group.
# Static sub-paths are declared before `/{vehiculo_id}` so they are matched first.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import ListQueryDep, get_current_user, get_vehiculo_service
from src.api.error_handlers import ValidationError
from src.api.pagination import build_pagination_metadata
from src.api.response_envelope import build_list_envelope, build_object_envelope
from src.api.schemas.cliente_schemas import KilometrajeRequest, VehiculoRequest
from src.api.schemas.common import ListResponse
from src.api.services.vehiculo_service import VEHICULO_SEARCH_CRITERIA, VehiculoService

router = APIRouter(prefix="/vehiculos", tags=["vehiculos"], dependencies=[Depends(get_current_user)])
VehiculoServiceDep = Annotated[VehiculoService, Depends(get_vehiculo_service)]


@router.get("", response_model=ListResponse)
def list_vehiculos(
    service: VehiculoServiceDep,
    query: ListQueryDep,
    search_criteria: str = Query(default="all", alias="searchCriteria"),
    cliente_id: int | None = Query(default=None, alias="clienteId", ge=1),
) -> dict[str, object]:
    if search_criteria not in VEHICULO_SEARCH_CRITERIA:
        supported = ", ".join(sorted(VEHICULO_SEARCH_CRITERIA))
        raise ValidationError.single("searchCriteria", f"searchCriteria must be one of: {supported}")

    result = service.list_vehiculos(
        search=query.search,
        search_criteria=search_criteria,
        cliente_id=cliente_id,
        pagination=query.pagination,
    )
    return build_list_envelope(
        data=result["rows"],
        pagination=build_pagination_metadata(pagination=query.pagination, total_count=result["total_count"]),
    )


@router.get("/cliente/{cliente_id}")
def list_by_cliente(cliente_id: int, service: VehiculoServiceDep) -> dict[str, object]:
    if cliente_id <= 0:
        raise ValidationError.single("cliente_id", "ID de cliente inválido")
    return build_object_envelope(data=service.list_by_cliente(cliente_id))


@router.get("/{vehiculo_id}")
def get_vehiculo(vehiculo_id: int, service: VehiculoServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.get_vehiculo(vehiculo_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_vehiculo(payload: VehiculoRequest, service: VehiculoServiceDep) -> dict[str, object]:
    created = service.create_vehiculo(payload.model_dump())
    return build_object_envelope(data=created, message="Vehículo creado exitosamente")


@router.put("/{vehiculo_id}")
def update_vehiculo(vehiculo_id: int, payload: VehiculoRequest, service: VehiculoServiceDep) -> dict[str, object]:
    updated = service.update_vehiculo(vehiculo_id, payload.model_dump())
    return build_object_envelope(data=updated, message="Vehículo actualizado exitosamente")


@router.patch("/{vehiculo_id}/kilometraje")
def update_kilometraje(
    vehiculo_id: int,
    payload: KilometrajeRequest,
    service: VehiculoServiceDep,
) -> dict[str, object]:
    updated = service.update_kilometraje(vehiculo_id, payload.kilometraje)
    return build_object_envelope(data=updated, message="Kilometraje actualizado exitosamente")


@router.delete("/{vehiculo_id}")
def delete_vehiculo(vehiculo_id: int, service: VehiculoServiceDep) -> dict[str, object]:
    service.delete_vehiculo(vehiculo_id)
    return build_object_envelope(data=None, message="Vehículo eliminado correctamente")
