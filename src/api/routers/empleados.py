# This file defines employee endpoints under the API prefix.
# Static sub-paths are declared before `/{empleado_id}` so they are matched first.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import ListQueryDep, get_current_user, get_empleado_service
from src.api.pagination import build_pagination_metadata
from src.api.response_envelope import build_list_envelope, build_object_envelope
from src.api.schemas.catalog_schemas import EmpleadoRequest, EmpleadoUpdateRequest
from src.api.schemas.common import ListResponse
from src.api.services.empleado_service import EmpleadoService

router = APIRouter(prefix="/empleados", tags=["empleados"], dependencies=[Depends(get_current_user)])
EmpleadoServiceDep = Annotated[EmpleadoService, Depends(get_empleado_service)]


@router.get("", response_model=ListResponse)
def list_empleados(
    service: EmpleadoServiceDep,
    query: ListQueryDep,
    sucursal_id: int | None = Query(default=None, ge=1),
) -> dict[str, object]:
    result = service.list_empleados(search=query.search, sucursal_id=sucursal_id, pagination=query.pagination)
    return build_list_envelope(
        data=result["rows"],
        pagination=build_pagination_metadata(pagination=query.pagination, total_count=result["total_count"]),
    )


@router.get("/activos")
def list_activos(service: EmpleadoServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.list_activos())


@router.get("/sucursal/{sucursal_id}")
def list_by_sucursal(sucursal_id: int, service: EmpleadoServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.list_by_sucursal(sucursal_id))


@router.get("/{empleado_id}")
def get_empleado(empleado_id: int, service: EmpleadoServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.get_empleado(empleado_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_empleado(payload: EmpleadoRequest, service: EmpleadoServiceDep) -> dict[str, object]:
    created = service.create_empleado(payload.model_dump())
    return build_object_envelope(data=created, message="Empleado creado exitosamente")


@router.put("/{empleado_id}")
def update_empleado(
    empleado_id: int,
    payload: EmpleadoUpdateRequest,
    service: EmpleadoServiceDep,
) -> dict[str, object]:
    updated = service.update_empleado(empleado_id, payload.model_dump())
    return build_object_envelope(data=updated, message="Empleado actualizado exitosamente")


@router.delete("/{empleado_id}")
def delete_empleado(empleado_id: int, service: EmpleadoServiceDep) -> dict[str, object]:
    service.delete_empleado(empleado_id)
    return build_object_envelope(data=None, message="Empleado eliminado exitosamente")
