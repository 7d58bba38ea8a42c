# This file provides dependency factories for FastAPI routes and middleware.
# It exists so services are created once and shared through dependency injection.
# The setup keeps routers thin and makes endpoint tests easy to override.
# Authentication and role checks are also exposed here as composable dependencies.

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Query, Request

from src.api.api_config import ApiConfig, get_api_config
from src.api.authorization import AuthenticatedUser, Role, require_role
from src.api.db_access import DatabaseClient
from src.api.error_handlers import Unauthorized, ValidationError
from src.api.pagination import PaginationSpec, normalize_pagination, normalize_search
from src.api.security import PasswordHasher
from src.api.services.auth_service import AuthService
from src.api.services.cliente_service import ClienteService
from src.api.services.configuracion_service import ConfiguracionService
from src.api.services.empleado_service import EmpleadoService
from src.api.services.servicio_service import ServicioService
from src.api.services.sucursal_service import SucursalService
from src.api.services.tipo_servicio_service import TipoServicioService
from src.api.services.user_service import UserService
from src.api.services.vehiculo_service import VehiculoService


@lru_cache(maxsize=1)
def get_database_client() -> DatabaseClient:
    config = get_api_config()
    return DatabaseClient(
        database_url=config.database_url,
        pool_size=config.db_pool_size,
        pool_timeout=config.db_pool_timeout_seconds,
        pool_recycle=config.db_pool_recycle_seconds,
    )


@lru_cache(maxsize=1)
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_api_config().bcrypt_rounds)


@lru_cache(maxsize=1)
def get_auth_service() -> AuthService:
    return AuthService(config=get_api_config(), db=get_database_client(), hasher=get_password_hasher())


@lru_cache(maxsize=1)
def get_user_service() -> UserService:
    return UserService(config=get_api_config(), db=get_database_client(), hasher=get_password_hasher())


@lru_cache(maxsize=1)
def get_cliente_service() -> ClienteService:
    return ClienteService(config=get_api_config(), db=get_database_client())


@lru_cache(maxsize=1)
def get_vehiculo_service() -> VehiculoService:
    return VehiculoService(config=get_api_config(), db=get_database_client())


@lru_cache(maxsize=1)
def get_servicio_service() -> ServicioService:
    return ServicioService(config=get_api_config(), db=get_database_client())


@lru_cache(maxsize=1)
def get_empleado_service() -> EmpleadoService:
    return EmpleadoService(config=get_api_config(), db=get_database_client())


@lru_cache(maxsize=1)
def get_sucursal_service() -> SucursalService:
    return SucursalService(config=get_api_config(), db=get_database_client())


@lru_cache(maxsize=1)
def get_tipo_servicio_service() -> TipoServicioService:
    return TipoServicioService(config=get_api_config(), db=get_database_client())


@lru_cache(maxsize=1)
def get_configuracion_service() -> ConfiguracionService:
    return ConfiguracionService(config=get_api_config(), db=get_database_client())


def get_config() -> ApiConfig:
    return get_api_config()


@dataclass(frozen=True)
class ListQuery:
    pagination: PaginationSpec
    search: str | None


def get_list_query(
    config: Annotated[ApiConfig, Depends(get_config)],
    page: int = Query(default=1, ge=1, le=10_000),
    limit: int | None = Query(default=None, ge=1),
    search: str | None = Query(default=None),
) -> ListQuery:
    try:
        pagination = normalize_pagination(
            page=page,
            limit=limit,
            default_page_size=config.default_page_size,
            max_page_size=config.max_page_size,
        )
        resolved_search = normalize_search(search, max_length=config.max_search_length)
    except ValueError as exc:
        raise ValidationError(error_code="INVALID_QUERY_PARAM", message=str(exc)) from exc
    return ListQuery(pagination=pagination, search=resolved_search)


def client_ip(request: Request, *, trust_proxy: bool = False) -> str | None:
    """Socket peer address, or the entry appended by our single trusted proxy when enabled."""

    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[-1].strip() or None
    return request.client.host if request.client else None


def get_bearer_token(request: Request) -> str:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized(error_code="NO_TOKEN", message="Token de acceso requerido")
    return token.strip()


def get_current_user(
    token: Annotated[str, Depends(get_bearer_token)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthenticatedUser:
    return auth_service.verify(token)


def require_admin(
    user: Annotated[AuthenticatedUser, Depends(get_current_user)],
) -> AuthenticatedUser:
    return require_role(user, {Role.ADMIN})


CurrentUserDep = Annotated[AuthenticatedUser, Depends(get_current_user)]
AdminUserDep = Annotated[AuthenticatedUser, Depends(require_admin)]
ConfigDep = Annotated[ApiConfig, Depends(get_config)]
ListQueryDep = Annotated[ListQuery, Depends(get_list_query)]
