# This file defines admin user-management request schemas.

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field

from src.api.authorization import Role

_NAME_PATTERN = r"^[a-zA-ZáéíóúÁÉÍÓÚñÑ\s]+$"


class UserCreateRequest(BaseModel):
    nombre: str = Field(min_length=2, max_length=100, pattern=_NAME_PATTERN)
    email: EmailStr = Field(max_length=100)
    password: str = Field(min_length=6, max_length=50)
    rol: Role


class UserUpdateRequest(BaseModel):
    nombre: str = Field(min_length=2, max_length=100, pattern=_NAME_PATTERN)
    email: EmailStr = Field(max_length=100)
    rol: Role
    activo: bool = True
