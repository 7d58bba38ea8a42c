# This file defines service-record endpoints under the API prefix.
# It exists so the aggregate writer, listings, and statistics share one route group.
# Static sub-paths are declared before `/{servicio_id}` so they are matched first.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import ListQueryDep, get_current_user, get_servicio_service
from src.api.pagination import build_pagination_metadata
from src.api.response_envelope import build_list_envelope, build_object_envelope
from src.api.schemas.common import ListResponse
from src.api.schemas.servicio_schemas import ServicioInput
from src.api.services.servicio_service import ServicioService

router = APIRouter(prefix="/servicios", tags=["servicios"], dependencies=[Depends(get_current_user)])
ServicioServiceDep = Annotated[ServicioService, Depends(get_servicio_service)]


@router.get("", response_model=ListResponse)
def list_servicios(
    service: ServicioServiceDep,
    query: ListQueryDep,
    cliente_id: int | None = Query(default=None, alias="clienteId", ge=1),
    vehiculo_id: int | None = Query(default=None, alias="vehiculoId", ge=1),
) -> dict[str, object]:
    result = service.list_servicios(
        search=query.search,
        cliente_id=cliente_id,
        vehiculo_id=vehiculo_id,
        pagination=query.pagination,
    )
    return build_list_envelope(
        data=result["rows"],
        pagination=build_pagination_metadata(pagination=query.pagination, total_count=result["total_count"]),
    )


@router.get("/estadisticas")
def estadisticas(service: ServicioServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.get_estadisticas())


@router.get("/cliente/{cliente_id}")
def list_by_cliente(cliente_id: int, service: ServicioServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.list_by_cliente(cliente_id))


@router.get("/vehiculo/{patente}")
def list_by_vehiculo(patente: str, service: ServicioServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.list_by_patente(patente))


@router.get("/{servicio_id}")
def get_servicio(servicio_id: int, service: ServicioServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.get_servicio(servicio_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_servicio(payload: ServicioInput, service: ServicioServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.create_servicio(payload), message="Servicio creado exitosamente")


@router.put("/{servicio_id}")
def update_servicio(servicio_id: int, payload: ServicioInput, service: ServicioServiceDep) -> dict[str, object]:
    updated = service.update_servicio(servicio_id, payload)
    return build_object_envelope(data=updated, message="Servicio actualizado exitosamente")


@router.delete("/{servicio_id}")
def delete_servicio(servicio_id: int, service: ServicioServiceDep) -> dict[str, object]:
    service.delete_servicio(servicio_id)
    return build_object_envelope(data=None, message="Servicio eliminado completamente")
