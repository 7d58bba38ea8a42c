# This file defines request schemas for branches, employees, and service types.
# It exists so the small catalog endpoints share one set of name and length rules.

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

_PERSON_NAME_PATTERN = r"^[a-zA-ZáéíóúÁÉÍÓÚñÑ\s]+$"
_CATALOG_NAME_PATTERN = r"^[a-zA-ZáéíóúÁÉÍÓÚñÑ0-9\s\-.]+$"


class _StrippedModel(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def strip_strings(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class SucursalRequest(_StrippedModel):
    nombre: str = Field(min_length=2, max_length=100, pattern=_CATALOG_NAME_PATTERN)
    ubicacion: str | None = Field(default=None, max_length=255)


class SucursalUpdateRequest(SucursalRequest):
    activo: bool = True


class EmpleadoRequest(_StrippedModel):
    nombre: str = Field(min_length=2, max_length=100, pattern=_PERSON_NAME_PATTERN)
    apellido: str = Field(min_length=2, max_length=100, pattern=_PERSON_NAME_PATTERN)
    telefono: str | None = Field(default=None, pattern=r"^(\+54\s?)?(\d{2,4}\s?)?\d{6,8}$")
    cargo: str | None = Field(default=None, max_length=100)
    sucursal_id: int = Field(ge=1)


class EmpleadoUpdateRequest(EmpleadoRequest):
    activo: bool = True


class TipoServicioRequest(_StrippedModel):
    nombre: str = Field(min_length=2, max_length=100, pattern=_CATALOG_NAME_PATTERN)
    descripcion: str | None = Field(default=None, max_length=500)
