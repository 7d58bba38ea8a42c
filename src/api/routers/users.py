# This file defines admin-only user management endpoints.
# It exists so account administration is separated from self-service authentication routes.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.api.authorization import Role
from src.api.dependencies import AdminUserDep, ListQueryDep, get_user_service
from src.api.pagination import build_pagination_metadata
from src.api.response_envelope import build_list_envelope, build_object_envelope
from src.api.schemas.common import ListResponse
from src.api.schemas.user_schemas import UserCreateRequest, UserUpdateRequest
from src.api.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])
UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.get("", response_model=ListResponse)
def list_users(
    _: AdminUserDep,
    service: UserServiceDep,
    query: ListQueryDep,
    rol: Role | None = Query(default=None),
) -> dict[str, object]:
    result = service.list_users(search=query.search, rol=rol, pagination=query.pagination)
    return build_list_envelope(
        data=result["rows"],
        pagination=build_pagination_metadata(pagination=query.pagination, total_count=result["total_count"]),
    )


@router.get("/{user_id}")
def get_user(user_id: int, _: AdminUserDep, service: UserServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.get_user(user_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreateRequest, _: AdminUserDep, service: UserServiceDep) -> dict[str, object]:
    created = service.create_user(
        nombre=payload.nombre,
        email=str(payload.email),
        password=payload.password,
        rol=payload.rol,
    )
    return build_object_envelope(data=created, message="Usuario creado exitosamente")


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    _: AdminUserDep,
    service: UserServiceDep,
) -> dict[str, object]:
    updated = service.update_user(
        user_id,
        nombre=payload.nombre,
        email=str(payload.email),
        rol=payload.rol,
        activo=payload.activo,
    )
    return build_object_envelope(data=updated, message="Usuario actualizado exitosamente")


@router.delete("/{user_id}")
def delete_user(user_id: int, admin: AdminUserDep, service: UserServiceDep) -> dict[str, object]:
    service.delete_user(user_id, acting_user_id=admin.id)
    return build_object_envelope(data=None, message="Usuario eliminado exitosamente")
