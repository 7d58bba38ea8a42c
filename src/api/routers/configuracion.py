# This file defines admin-only configuration endpoints under the API prefix.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_configuracion_service, require_admin
from src.api.response_envelope import build_object_envelope
from src.api.schemas.configuracion_schemas import ConfiguracionBulkRequest, ConfiguracionEntry
from src.api.services.configuracion_service import ConfiguracionService

router = APIRouter(prefix="/configuracion", tags=["configuracion"], dependencies=[Depends(require_admin)])
ConfiguracionServiceDep = Annotated[ConfiguracionService, Depends(get_configuracion_service)]


@router.get("")
def list_configuracion(service: ConfiguracionServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.list_all())


@router.get("/categoria/{categoria}")
def list_by_categoria(categoria: str, service: ConfiguracionServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.list_by_categoria(categoria))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_configuracion(payload: ConfiguracionEntry, service: ConfiguracionServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.create(payload), message="Configuración creada exitosamente")


@router.put("")
def bulk_update(payload: ConfiguracionBulkRequest, service: ConfiguracionServiceDep) -> dict[str, object]:
    updated = service.bulk_upsert(payload.configuraciones)
    return build_object_envelope(data=updated, message="Configuración actualizada exitosamente")


@router.delete("/{config_id}")
def delete_configuracion(config_id: int, service: ConfiguracionServiceDep) -> dict[str, object]:
    service.delete(config_id)
    return build_object_envelope(data=None, message="Configuración eliminada exitosamente")
