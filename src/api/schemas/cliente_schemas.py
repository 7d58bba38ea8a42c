# This file defines client and vehicle request schemas.
# It exists so field rules (DNI digits, plate format, model year range) are enforced at the boundary.
# Vehicle payloads accept both the frontend's camel-case keys and the column names.

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

_NAME_PATTERN = r"^[a-zA-ZáéíóúÁÉÍÓÚñÑ\s]+$"


class ClienteRequest(BaseModel):
    nombre: str = Field(min_length=2, max_length=100, pattern=_NAME_PATTERN)
    apellido: str = Field(min_length=2, max_length=100, pattern=_NAME_PATTERN)
    dni: str | None = Field(default=None, pattern=r"^\d{7,8}$")
    telefono: str | None = Field(default=None, max_length=30)
    direccion: str | None = Field(default=None, min_length=5, max_length=255)

    @field_validator("nombre", "apellido", mode="before")
    @classmethod
    def strip_names(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("dni", "telefono", "direccion", mode="before")
    @classmethod
    def blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value


class VehiculoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cliente_id: int = Field(ge=1, validation_alias=AliasChoices("clienteId", "cliente_id"))
    patente: str = Field(min_length=3, max_length=10, pattern=r"^[A-Z0-9]+$")
    marca: str = Field(min_length=2, max_length=50)
    modelo: str = Field(min_length=2, max_length=50, pattern=r"^[a-zA-Z0-9áéíóúÁÉÍÓÚñÑ\s\-.]+$")
    anio: int | None = Field(default=None, validation_alias=AliasChoices("año", "anio"))
    kilometraje: int = Field(default=0, ge=0, le=9_999_999)
    observaciones: str | None = Field(default=None, max_length=1000)

    @field_validator("patente", mode="before")
    @classmethod
    def normalize_patente(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("marca", "modelo", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("anio")
    @classmethod
    def validate_anio(cls, value: int | None) -> int | None:
        if value is None:
            return value
        max_year = datetime.now().year + 1
        if not 1900 <= value <= max_year:
            raise ValueError(f"El año debe estar entre 1900 y {max_year}")
        return value


class KilometrajeRequest(BaseModel):
    kilometraje: int = Field(ge=0, le=9_999_999)
