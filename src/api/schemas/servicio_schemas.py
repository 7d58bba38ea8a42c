# This file defines the service aggregate payload: a service, its line items, and their products.
# It exists so the aggregate writer receives one typed structure for create and update.
# Presence of the required references is checked by the writer so every missing field is reported together.

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field

PositiveId = Annotated[int, Field(ge=1)]


class ProductoInput(BaseModel):
    nombre: str = Field(min_length=1, max_length=200)
    es_nuestro: bool = False


class ServicioItemInput(BaseModel):
    tipo_servicio_id: PositiveId | None = None
    descripcion: str | None = Field(default=None, max_length=500)
    observaciones: str | None = Field(default=None, max_length=500)
    notas: str | None = Field(default=None, max_length=500)
    productos: list[ProductoInput] = Field(default_factory=list)


class ServicioInput(BaseModel):
    cliente_id: PositiveId | None = None
    vehiculo_id: PositiveId | None = None
    sucursal_id: PositiveId | None = None
    empleados: list[PositiveId] = Field(default_factory=list)
    descripcion: str | None = Field(default=None, max_length=1000)
    observaciones: str | None = Field(default=None, max_length=1000)
    precio_referencia: float | None = Field(default=None, ge=0, le=999_999.99)
    items: list[ServicioItemInput] | None = None


class ServicioEstadisticas(BaseModel):
    total: int
    servicios_hoy: int
    servicios_semana: int
    servicios_mes: int
