# This file defines branch endpoints under the API prefix.
# Static sub-paths are declared before `/{sucursal_id}` so they are matched first.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import ListQueryDep, get_current_user, get_sucursal_service
from src.api.pagination import build_pagination_metadata
from src.api.response_envelope import build_list_envelope, build_object_envelope
from src.api.schemas.catalog_schemas import SucursalRequest, SucursalUpdateRequest
from src.api.schemas.common import ListResponse
from src.api.services.sucursal_service import SucursalService

router = APIRouter(prefix="/sucursales", tags=["sucursales"], dependencies=[Depends(get_current_user)])
SucursalServiceDep = Annotated[SucursalService, Depends(get_sucursal_service)]


@router.get("", response_model=ListResponse)
def list_sucursales(
    service: SucursalServiceDep,
    query: ListQueryDep,
    activo: bool | None = Query(default=None),
) -> dict[str, object]:
    result = service.list_sucursales(search=query.search, activo=activo, pagination=query.pagination)
    return build_list_envelope(
        data=result["rows"],
        pagination=build_pagination_metadata(pagination=query.pagination, total_count=result["total_count"]),
    )


@router.get("/activas")
def list_activas(service: SucursalServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.list_activas())


@router.get("/{sucursal_id}")
def get_sucursal(sucursal_id: int, service: SucursalServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.get_sucursal(sucursal_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_sucursal(payload: SucursalRequest, service: SucursalServiceDep) -> dict[str, object]:
    created = service.create_sucursal(nombre=payload.nombre, ubicacion=payload.ubicacion)
    return build_object_envelope(data=created, message="Sucursal creada exitosamente")


@router.put("/{sucursal_id}")
def update_sucursal(
    sucursal_id: int,
    payload: SucursalUpdateRequest,
    service: SucursalServiceDep,
) -> dict[str, object]:
    updated = service.update_sucursal(
        sucursal_id,
        nombre=payload.nombre,
        ubicacion=payload.ubicacion,
        activo=payload.activo,
    )
    return build_object_envelope(data=updated, message="Sucursal actualizada exitosamente")


@router.delete("/{sucursal_id}")
def delete_sucursal(sucursal_id: int, service: SucursalServiceDep) -> dict[str, object]:
    service.delete_sucursal(sucursal_id)
    return build_object_envelope(data=None, message="Sucursal eliminada exitosamente")
