# This file defines roles and the role guard applied after token verification.
# It exists so authorization is a pure check on verified claims, independent of request objects.
# Routers compose it through FastAPI dependencies; services and tests call it directly.

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from enum import Enum

from src.api.error_handlers import Forbidden


class Role(str, Enum):
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLEADO"


@dataclass(frozen=True)
class AuthenticatedUser:
    id: int
    email: str
    role: Role
    nombre: str | None = None
    token_hash: str | None = None


def require_role(user: AuthenticatedUser, allowed: Collection[Role]) -> AuthenticatedUser:
    """Return the user when their role is allowed, else raise Forbidden."""

    if user.role not in allowed:
        raise Forbidden(
            error_code="INSUFFICIENT_PERMISSIONS",
            message="No tienes permisos para realizar esta acción",
        )
    return user
