# This file defines service-type catalog endpoints under the API prefix.
# The quick search route feeds the item pickers of the service form.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import ListQueryDep, get_current_user, get_tipo_servicio_service
from src.api.pagination import build_pagination_metadata
from src.api.response_envelope import build_list_envelope, build_object_envelope
from src.api.schemas.catalog_schemas import TipoServicioRequest
from src.api.schemas.common import ListResponse
from src.api.services.tipo_servicio_service import TipoServicioService

router = APIRouter(prefix="/tipos-servicios", tags=["tipos-servicios"], dependencies=[Depends(get_current_user)])
TipoServicioServiceDep = Annotated[TipoServicioService, Depends(get_tipo_servicio_service)]


@router.get("", response_model=ListResponse)
def list_tipos(service: TipoServicioServiceDep, query: ListQueryDep) -> dict[str, object]:
    result = service.list_tipos(search=query.search, pagination=query.pagination)
    return build_list_envelope(
        data=result["rows"],
        pagination=build_pagination_metadata(pagination=query.pagination, total_count=result["total_count"]),
        message="Tipos de servicios obtenidos exitosamente",
    )


@router.get("/search")
def search_tipos(
    service: TipoServicioServiceDep,
    q: str | None = Query(default=None, max_length=100),
) -> dict[str, object]:
    return build_object_envelope(data=service.search_tipos((q or "").strip() or None))


@router.get("/{tipo_id}")
def get_tipo(tipo_id: int, service: TipoServicioServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.get_tipo(tipo_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_tipo(payload: TipoServicioRequest, service: TipoServicioServiceDep) -> dict[str, object]:
    created = service.create_tipo(nombre=payload.nombre, descripcion=payload.descripcion)
    return build_object_envelope(data=created, message="Tipo de servicio creado exitosamente")


@router.put("/{tipo_id}")
def update_tipo(tipo_id: int, payload: TipoServicioRequest, service: TipoServicioServiceDep) -> dict[str, object]:
    updated = service.update_tipo(tipo_id, nombre=payload.nombre, descripcion=payload.descripcion)
    return build_object_envelope(data=updated, message="Tipo de servicio actualizado exitosamente")


@router.delete("/{tipo_id}")
def delete_tipo(tipo_id: int, service: TipoServicioServiceDep) -> dict[str, object]:
    service.delete_tipo(tipo_id)
    return build_object_envelope(data=None, message="Tipo de servicio eliminado correctamente")
