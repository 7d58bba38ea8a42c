# This file defines authentication endpoints under the API prefix.
# It exists so login, logout, profile, and password changes share one route group.
# Login is rate limited more strictly by the app middleware; registration is admin only.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from src.api.dependencies import (
    AdminUserDep,
    ConfigDep,
    CurrentUserDep,
    client_ip,
    get_auth_service,
    get_bearer_token,
)
from src.api.response_envelope import build_object_envelope
from src.api.schemas.auth_schemas import ChangePasswordRequest, LoginRequest, LoginResponse, RegisterRequest
from src.api.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest, request: Request, config: ConfigDep, service: AuthServiceDep
) -> dict[str, object]:
    result = service.login(
        email=payload.email,
        password=payload.password,
        ip_address=client_ip(request, trust_proxy=config.trust_proxy),
        user_agent=request.headers.get("user-agent"),
    )
    return build_object_envelope(data=result, message="Login exitoso")


@router.post("/logout")
def logout(token: Annotated[str, Depends(get_bearer_token)], service: AuthServiceDep) -> dict[str, object]:
    service.logout(token)
    return build_object_envelope(data=None, message="Logout exitoso")


@router.get("/me")
def me(user: CurrentUserDep, service: AuthServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.get_profile(user.id), message="Usuario obtenido exitosamente")


@router.get("/profile")
def profile(user: CurrentUserDep, service: AuthServiceDep) -> dict[str, object]:
    return build_object_envelope(data=service.get_profile(user.id), message="Perfil obtenido exitosamente")


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    user: CurrentUserDep,
    service: AuthServiceDep,
) -> dict[str, object]:
    service.change_password(
        user_id=user.id,
        current_password=payload.current_password,
        new_password=payload.new_password,
        keep_token_hash=user.token_hash,
    )
    return build_object_envelope(data=None, message="Contraseña actualizada exitosamente")


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, _: AdminUserDep, service: AuthServiceDep) -> dict[str, object]:
    created = service.register(
        nombre=payload.nombre,
        email=str(payload.email),
        password=payload.password,
        rol=payload.rol,
    )
    return build_object_envelope(data=created, message="Usuario creado exitosamente")
