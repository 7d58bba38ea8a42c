# This file implements client management and the client listing with embedded vehicles.
# It exists so routers can stay transport-focused while SQL and row shaping live in one layer.
# Deleting a client is refused while the client still owns active vehicles.

from __future__ import annotations

import logging
from typing import Any

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient, utc_now
from src.api.error_handlers import ReferencedRecordError
from src.api.pagination import LIKE_ESCAPE_SQL, PaginationSpec, like_pattern
from src.api.repositories import ActiveRecordRepository

logger = logging.getLogger(__name__)

CLIENTE_SEARCH_FIELDS: frozenset[str] = frozenset({"nombre", "apellido", "dni", "telefono", "all"})


def full_name_condition(*, nombre_column: str, apellido_column: str, term: str, params: dict[str, Any]) -> str:
    """Match "nombre apellido" typed as one phrase without database string concatenation."""

    first, _, rest = term.partition(" ")
    if not rest.strip():
        return "1 = 0"
    params["full_first"] = like_pattern(first)
    params["full_rest"] = like_pattern(rest.strip())
    return (
        f"({nombre_column} LIKE :full_first {LIKE_ESCAPE_SQL} "
        f"AND {apellido_column} LIKE :full_rest {LIKE_ESCAPE_SQL})"
    )


class ClienteService:
    """CRUD for shop clients."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient) -> None:
        self.config = config
        self.db = db
        self.repository = ActiveRecordRepository(
            db=db,
            table_name="clientes",
            not_found_code="CLIENT_NOT_FOUND",
            not_found_message="Cliente no encontrado",
        )

    def list_clientes(
        self,
        *,
        search: str | None,
        search_by: str,
        pagination: PaginationSpec,
    ) -> dict[str, Any]:
        where_clauses: list[str] = ["c.activo = :activo"]
        params: dict[str, Any] = {"activo": True}

        if search:
            where_clauses.append(self._search_condition(search, search_by, params))

        where_sql = " AND ".join(where_clauses)
        total_count = int(
            self.db.fetch_scalar(f"SELECT COUNT(*) FROM clientes c WHERE {where_sql}", params) or 0
        )

        rows = self.db.fetch_all(
            f"""
            SELECT c.id, c.nombre, c.apellido, c.dni, c.telefono, c.direccion,
                   c.activo, c.created_at, c.updated_at
            FROM clientes c
            WHERE {where_sql}
            ORDER BY c.nombre ASC, c.apellido ASC, c.id ASC
            LIMIT :limit OFFSET :offset
            """,
            {**params, "limit": pagination.page_size, "offset": pagination.offset},
        )

        vehicles_by_client = self._active_vehicles_for([int(row["id"]) for row in rows])
        for row in rows:
            row["vehiculos"] = vehicles_by_client.get(int(row["id"]), [])
        return {"rows": rows, "total_count": total_count}

    def get_cliente(self, cliente_id: int) -> dict[str, Any]:
        return self.repository.get_active(cliente_id)

    def create_cliente(
        self,
        *,
        nombre: str,
        apellido: str,
        dni: str | None,
        telefono: str | None,
        direccion: str | None,
    ) -> dict[str, Any]:
        self._ensure_dni_free(dni)
        now = utc_now()
        cliente_id = self.repository.insert(
            {
                "nombre": nombre,
                "apellido": apellido,
                "dni": dni,
                "telefono": telefono,
                "direccion": direccion,
                "activo": True,
                "created_at": now,
                "updated_at": now,
            }
        )
        logger.info("Created cliente id=%s", cliente_id)
        return self.repository.get_active(cliente_id)

    def update_cliente(
        self,
        cliente_id: int,
        *,
        nombre: str,
        apellido: str,
        dni: str | None,
        telefono: str | None,
        direccion: str | None,
    ) -> dict[str, Any]:
        self.repository.get_active(cliente_id)
        self._ensure_dni_free(dni, exclude_id=cliente_id)
        self.repository.update(
            cliente_id,
            {
                "nombre": nombre,
                "apellido": apellido,
                "dni": dni,
                "telefono": telefono,
                "direccion": direccion,
            },
        )
        return self.repository.get_active(cliente_id)

    def delete_cliente(self, cliente_id: int) -> None:
        self.repository.get_active(cliente_id)
        active_vehicles = int(
            self.db.fetch_scalar(
                "SELECT COUNT(*) FROM vehiculos WHERE cliente_id = :id AND activo = :activo",
                {"id": cliente_id, "activo": True},
            )
            or 0
        )
        if active_vehicles > 0:
            raise ReferencedRecordError(
                error_code="VEHICLES_ASSOCIATED",
                message="No se puede eliminar el cliente porque tiene vehículos asociados",
            )
        self.repository.soft_delete(cliente_id)

    def _ensure_dni_free(self, dni: str | None, *, exclude_id: int | None = None) -> None:
        self.repository.ensure_unique(
            "dni",
            dni,
            exclude_id=exclude_id,
            error_code="DUPLICATE_DNI",
            message="Ya existe un cliente con ese DNI",
        )

    def _active_vehicles_for(self, cliente_ids: list[int]) -> dict[int, list[dict[str, Any]]]:
        if not cliente_ids:
            return {}
        placeholders = ", ".join(f":cliente_{index}" for index in range(len(cliente_ids)))
        params: dict[str, Any] = {f"cliente_{index}": value for index, value in enumerate(cliente_ids)}
        params["activo"] = True
        rows = self.db.fetch_all(
            f"""
            SELECT id, cliente_id, patente, marca, modelo, anio, kilometraje
            FROM vehiculos
            WHERE activo = :activo AND cliente_id IN ({placeholders})
            ORDER BY patente ASC
            """,
            params,
        )
        grouped: dict[int, list[dict[str, Any]]] = {}
        for row in rows:
            owner = int(row.pop("cliente_id"))
            grouped.setdefault(owner, []).append(row)
        return grouped

    @staticmethod
    def _search_condition(search: str, search_by: str, params: dict[str, Any]) -> str:
        params["search"] = like_pattern(search)
        like = f"LIKE :search {LIKE_ESCAPE_SQL}"
        if search_by == "nombre":
            full_name = full_name_condition(
                nombre_column="c.nombre", apellido_column="c.apellido", term=search, params=params
            )
            return f"(c.nombre {like} OR {full_name})"
        if search_by == "apellido":
            return f"c.apellido {like}"
        if search_by == "dni":
            return f"c.dni {like}"
        if search_by == "telefono":
            return f"c.telefono {like}"

        full_name = full_name_condition(
            nombre_column="c.nombre", apellido_column="c.apellido", term=search, params=params
        )
        return (
            f"(c.nombre {like} OR c.apellido {like} OR c.dni {like} "
            f"OR c.telefono {like} OR {full_name})"
        )
