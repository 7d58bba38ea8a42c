# This file defines request and response schemas for authentication endpoints.
# It exists so credential payloads are validated before they reach the auth service.
# Camel-case aliases are accepted for the password change form used by the frontend.

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.api.authorization import Role


class LoginRequest(BaseModel):
    # Any address-shaped string is accepted; one with no matching user fails as invalid credentials.
    email: str = Field(min_length=3, max_length=100, pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    password: str = Field(min_length=1)


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword", min_length=1)
    new_password: str = Field(alias="newPassword", min_length=6, max_length=50)


class RegisterRequest(BaseModel):
    nombre: str = Field(min_length=2, max_length=100, pattern=r"^[a-zA-ZáéíóúÁÉÍÓÚñÑ\s]+$")
    email: EmailStr = Field(max_length=100)
    password: str = Field(min_length=6, max_length=50)
    rol: Role


class UserPublic(BaseModel):
    id: int
    nombre: str
    email: str
    role: str
    activo: bool | None = None
    creado_en: datetime | None = None
    ultimo_login: datetime | None = None


class LoginData(BaseModel):
    user: UserPublic
    token: str
    expires_at: datetime


class LoginResponse(BaseModel):
    success: bool = True
    message: str
    data: LoginData
