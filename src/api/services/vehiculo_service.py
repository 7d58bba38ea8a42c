# This file implements vehicle management for client-owned vehicles.
# It exists so routers can stay transport-focused while SQL and row shaping live in one layer.
# Plates are stored upper-cased and must be unique among active vehicles; mileage never goes down.

from __future__ import annotations

import logging
from typing import Any

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient, utc_now
from src.api.error_handlers import NotFound, ValidationError
from src.api.pagination import LIKE_ESCAPE_SQL, PaginationSpec, like_pattern
from src.api.repositories import ActiveRecordRepository
from src.api.services.cliente_service import full_name_condition

logger = logging.getLogger(__name__)

VEHICULO_SEARCH_CRITERIA: frozenset[str] = frozenset({"patente", "marca_modelo", "cliente", "all"})

_VEHICULO_SELECT = """
SELECT v.id, v.cliente_id, v.patente, v.marca, v.modelo, v.anio, v.kilometraje,
       v.observaciones, v.activo, v.created_at, v.updated_at,
       c.nombre AS cliente_nombre_pila, c.apellido AS cliente_apellido,
       c.dni AS cliente_dni, c.telefono AS cliente_telefono
FROM vehiculos v
LEFT JOIN clientes c ON c.id = v.cliente_id
"""


def _with_cliente_nombre(row: dict[str, Any]) -> dict[str, Any]:
    first = row.pop("cliente_nombre_pila", None) or ""
    last = row.get("cliente_apellido") or ""
    row["cliente_nombre"] = f"{first} {last}".strip() or None
    return row


class VehiculoService:
    """CRUD for vehicles plus mileage updates."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient) -> None:
        self.config = config
        self.db = db
        self.repository = ActiveRecordRepository(
            db=db,
            table_name="vehiculos",
            not_found_code="VEHICLE_NOT_FOUND",
            not_found_message="Vehículo no encontrado",
        )
        self.clientes = ActiveRecordRepository(
            db=db,
            table_name="clientes",
            not_found_code="CLIENT_NOT_FOUND",
            not_found_message="Cliente no encontrado",
        )

    def list_vehiculos(
        self,
        *,
        search: str | None,
        search_criteria: str,
        cliente_id: int | None,
        pagination: PaginationSpec,
    ) -> dict[str, Any]:
        where_clauses: list[str] = ["v.activo = :activo"]
        params: dict[str, Any] = {"activo": True}

        if cliente_id is not None:
            where_clauses.append("v.cliente_id = :cliente_id")
            params["cliente_id"] = cliente_id
        if search:
            where_clauses.append(self._search_condition(search, search_criteria, params))

        where_sql = " AND ".join(where_clauses)
        total_count = int(
            self.db.fetch_scalar(
                f"""
                SELECT COUNT(*)
                FROM vehiculos v
                LEFT JOIN clientes c ON c.id = v.cliente_id
                WHERE {where_sql}
                """,
                params,
            )
            or 0
        )
        rows = self.db.fetch_all(
            f"""
            {_VEHICULO_SELECT}
            WHERE {where_sql}
            ORDER BY v.created_at DESC, v.id DESC
            LIMIT :limit OFFSET :offset
            """,
            {**params, "limit": pagination.page_size, "offset": pagination.offset},
        )
        return {"rows": [_with_cliente_nombre(row) for row in rows], "total_count": total_count}

    def get_vehiculo(self, vehiculo_id: int) -> dict[str, Any]:
        row = self.db.fetch_one(
            f"{_VEHICULO_SELECT} WHERE v.id = :id AND v.activo = :activo",
            {"id": vehiculo_id, "activo": True},
        )
        if row is None:
            raise NotFound(error_code="VEHICLE_NOT_FOUND", message="Vehículo no encontrado")
        return _with_cliente_nombre(row)

    def list_by_cliente(self, cliente_id: int) -> list[dict[str, Any]]:
        rows = self.db.fetch_all(
            f"""
            {_VEHICULO_SELECT}
            WHERE v.cliente_id = :cliente_id AND v.activo = :activo
            ORDER BY v.patente ASC
            """,
            {"cliente_id": cliente_id, "activo": True},
        )
        return [_with_cliente_nombre(row) for row in rows]

    def create_vehiculo(self, values: dict[str, Any]) -> dict[str, Any]:
        self._ensure_cliente_active(int(values["cliente_id"]))
        self._ensure_patente_free(values["patente"])

        now = utc_now()
        vehiculo_id = self.repository.insert(
            {**self._columns(values), "activo": True, "created_at": now, "updated_at": now}
        )
        logger.info("Created vehiculo id=%s patente=%s", vehiculo_id, values["patente"])
        return self.get_vehiculo(vehiculo_id)

    def update_vehiculo(self, vehiculo_id: int, values: dict[str, Any]) -> dict[str, Any]:
        self.repository.get_active(vehiculo_id)
        self._ensure_cliente_active(int(values["cliente_id"]))
        self._ensure_patente_free(values["patente"], exclude_id=vehiculo_id)

        self.repository.update(vehiculo_id, self._columns(values))
        return self.get_vehiculo(vehiculo_id)

    def update_kilometraje(self, vehiculo_id: int, kilometraje: int) -> dict[str, Any]:
        current = self.repository.get_active(vehiculo_id)
        previous = int(current.get("kilometraje") or 0)
        if kilometraje < previous:
            raise ValidationError.single(
                "kilometraje",
                "El nuevo kilometraje no puede ser menor al actual",
            )
        self.repository.update(vehiculo_id, {"kilometraje": kilometraje})
        return self.get_vehiculo(vehiculo_id)

    def delete_vehiculo(self, vehiculo_id: int) -> None:
        self.repository.get_active(vehiculo_id)
        self.repository.soft_delete(vehiculo_id)

    def _ensure_cliente_active(self, cliente_id: int) -> None:
        if not self.clientes.exists_active(cliente_id):
            raise ValidationError.single("cliente_id", "Cliente no encontrado")

    def _ensure_patente_free(self, patente: str, *, exclude_id: int | None = None) -> None:
        self.repository.ensure_unique(
            "patente",
            patente.upper(),
            exclude_id=exclude_id,
            error_code="DUPLICATE_PATENTE",
            message="Ya existe un vehículo con esa patente",
        )

    @staticmethod
    def _columns(values: dict[str, Any]) -> dict[str, Any]:
        return {
            "cliente_id": int(values["cliente_id"]),
            "patente": str(values["patente"]).strip().upper(),
            "marca": values["marca"],
            "modelo": values["modelo"],
            "anio": values.get("anio"),
            "kilometraje": int(values.get("kilometraje") or 0),
            "observaciones": values.get("observaciones"),
        }

    @staticmethod
    def _search_condition(search: str, criteria: str, params: dict[str, Any]) -> str:
        params["search"] = like_pattern(search)
        like = f"LIKE :search {LIKE_ESCAPE_SQL}"
        if criteria == "patente":
            return f"v.patente {like}"
        if criteria == "marca_modelo":
            return f"(v.marca {like} OR v.modelo {like})"

        full_name = full_name_condition(
            nombre_column="c.nombre", apellido_column="c.apellido", term=search, params=params
        )
        if criteria == "cliente":
            return f"(c.nombre {like} OR c.apellido {like} OR {full_name})"
        return (
            f"(v.patente {like} OR v.marca {like} OR v.modelo {like} "
            f"OR c.nombre {like} OR c.apellido {like} OR {full_name})"
        )
