# This file defines client endpoints under the API prefix.
# It exists so client CRUD and the vehicle-embedding listing share one route group.
# Every route requires an authenticated session.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import ListQueryDep, get_cliente_service, get_current_user
from src.api.error_handlers import ValidationError
from src.api.pagination import build_pagination_metadata
from src.api.response_envelope import build_list_envelope, build_object_envelope
from src.api.schemas.cliente_schemas import ClienteRequest
from src.api.schemas.common import ListResponse
from src.api.services.cliente_service import CLIENTE_SEARCH_FIELDS, ClienteService

router = APIRouter(prefix="/clientes", tags=["clientes"], dependencies=[Depends(get_current_user)])
ClienteServiceDep = Annotated[ClienteService, Depends(get_cliente_service)]


@router.get("", response_model=ListResponse)
def list_clientes(
    service: ClienteServiceDep,
    query: ListQueryDep,
    search_by: str = Query(default="all", alias="searchBy"),
) -> dict[str, object]:
    if search_by not in CLIENTE_SEARCH_FIELDS:
        supported = ", ".join(sorted(CLIENTE_SEARCH_FIELDS))
        raise ValidationError.single("searchBy", f"searchBy must be one of: {supported}")

    result = service.list_clientes(search=query.search, search_by=search_by, pagination=query.pagination)
    return build_list_envelope(
        data=result["rows"],
        pagination=build_pagination_metadata(pagination=query.pagination, total_count=result["total_count"]),
    )


@router.get("/{cliente_id}")
def get_cliente(cliente_id: int, service: ClienteServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.get_cliente(cliente_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_cliente(payload: ClienteRequest, service: ClienteServiceDep) -> dict[str, object]:
    created = service.create_cliente(**payload.model_dump())
    return build_object_envelope(data=created, message="Cliente creado exitosamente")


@router.put("/{cliente_id}")
def update_cliente(cliente_id: int, payload: ClienteRequest, service: ClienteServiceDep) -> dict[str, object]:
    updated = service.update_cliente(cliente_id, **payload.model_dump())
    return build_object_envelope(data=updated, message="Cliente actualizado exitosamente")


@router.delete("/{cliente_id}")
def delete_cliente(cliente_id: int, service: ClienteServiceDep) -> dict[str, object]:
    service.delete_cliente(cliente_id)
    return build_object_envelope(data=None, message="Cliente eliminado correctamente")
