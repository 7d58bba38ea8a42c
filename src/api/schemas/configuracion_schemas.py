# This file defines request schemas for admin-managed configuration entries.
# Entries are keyed by (categoria, clave) and carry a typed string value.

from __future__ import annotations

import json
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

ConfigType = Literal["string", "number", "boolean", "json"]


class ConfiguracionEntry(BaseModel):
    categoria: str = Field(min_length=2, max_length=50, pattern=r"^[a-zA-Z_]+$")
    clave: str = Field(min_length=2, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")
    valor: str = Field(min_length=1, max_length=1000)
    tipo: ConfigType = "string"
    descripcion: str | None = Field(default=None, max_length=200)

    @field_validator("categoria", "clave", "valor", mode="before")
    @classmethod
    def strip_strings(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def validate_valor_matches_tipo(self) -> ConfiguracionEntry:
        if self.tipo == "number":
            try:
                float(self.valor)
            except ValueError as exc:
                raise ValueError("valor must be numeric when tipo is 'number'") from exc
        elif self.tipo == "boolean" and self.valor.lower() not in {"true", "false", "1", "0"}:
            raise ValueError("valor must be true or false when tipo is 'boolean'")
        elif self.tipo == "json":
            try:
                json.loads(self.valor)
            except ValueError as exc:
                raise ValueError("valor must be valid JSON when tipo is 'json'") from exc
        return self


class ConfiguracionBulkRequest(BaseModel):
    configuraciones: list[ConfiguracionEntry] = Field(min_length=1)
