# This file implements the service-type catalog used by service line items.
# It exists so routers can stay transport-focused while SQL and row shaping live in one layer.

from __future__ import annotations

import logging
from typing import Any

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient, utc_now
from src.api.error_handlers import ReferencedRecordError
from src.api.pagination import LIKE_ESCAPE_SQL, PaginationSpec, like_pattern
from src.api.repositories import ActiveRecordRepository

logger = logging.getLogger(__name__)

QUICK_SEARCH_LIMIT = 20


class TipoServicioService:
    """CRUD and quick search for service types."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient) -> None:
        self.config = config
        self.db = db
        self.repository = ActiveRecordRepository(
            db=db,
            table_name="tipos_servicios",
            not_found_code="SERVICE_TYPE_NOT_FOUND",
            not_found_message="Tipo de servicio no encontrado",
        )

    def list_tipos(self, *, search: str | None, pagination: PaginationSpec) -> dict[str, Any]:
        where_sql, params = self._where(search)
        total_count = int(self.db.fetch_scalar(f"SELECT COUNT(*) FROM tipos_servicios WHERE {where_sql}", params) or 0)
        rows = self.db.fetch_all(
            f"""
            SELECT * FROM tipos_servicios
            WHERE {where_sql}
            ORDER BY nombre ASC, id ASC
            LIMIT :limit OFFSET :offset
            """,
            {**params, "limit": pagination.page_size, "offset": pagination.offset},
        )
        return {"rows": rows, "total_count": total_count}

    def search_tipos(self, query: str | None) -> list[dict[str, Any]]:
        where_sql, params = self._where(query)
        return self.db.fetch_all(
            f"SELECT * FROM tipos_servicios WHERE {where_sql} ORDER BY nombre ASC LIMIT :limit",
            {**params, "limit": QUICK_SEARCH_LIMIT},
        )

    def get_tipo(self, tipo_id: int) -> dict[str, Any]:
        return self.repository.get_active(tipo_id)

    def create_tipo(self, *, nombre: str, descripcion: str | None) -> dict[str, Any]:
        self._ensure_nombre_free(nombre)
        now = utc_now()
        tipo_id = self.repository.insert(
            {"nombre": nombre, "descripcion": descripcion, "activo": True, "created_at": now, "updated_at": now}
        )
        logger.info("Created tipo_servicio id=%s", tipo_id)
        return self.repository.get_active(tipo_id)

    def update_tipo(self, tipo_id: int, *, nombre: str, descripcion: str | None) -> dict[str, Any]:
        self.repository.get_active(tipo_id)
        self._ensure_nombre_free(nombre, exclude_id=tipo_id)
        self.repository.update(tipo_id, {"nombre": nombre, "descripcion": descripcion})
        return self.repository.get_active(tipo_id)

    def delete_tipo(self, tipo_id: int) -> None:
        self.repository.get_active(tipo_id)
        in_use = int(
            self.db.fetch_scalar(
                "SELECT COUNT(*) FROM servicio_items WHERE tipo_servicio_id = :id",
                {"id": tipo_id},
            )
            or 0
        )
        if in_use > 0:
            raise ReferencedRecordError(
                error_code="SERVICE_TYPE_IN_USE",
                message="No se puede eliminar el tipo de servicio porque está siendo usado en servicios",
            )
        self.repository.soft_delete(tipo_id)

    def _ensure_nombre_free(self, nombre: str, *, exclude_id: int | None = None) -> None:
        self.repository.ensure_unique(
            "nombre",
            nombre,
            exclude_id=exclude_id,
            error_code="DUPLICATE_SERVICE_TYPE",
            message="Ya existe un tipo de servicio con ese nombre",
        )

    @staticmethod
    def _where(search: str | None) -> tuple[str, dict[str, Any]]:
        where_clauses = ["activo = :activo"]
        params: dict[str, Any] = {"activo": True}
        if search:
            params["search"] = like_pattern(search)
            where_clauses.append(
                f"(nombre LIKE :search {LIKE_ESCAPE_SQL} OR descripcion LIKE :search {LIKE_ESCAPE_SQL})"
            )
        return " AND ".join(where_clauses), params
