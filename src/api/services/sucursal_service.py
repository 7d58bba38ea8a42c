# This file implements branch management with service and employee counts.
# It exists so routers can stay transport-focused while SQL and row shaping live in one layer.
# A branch cannot be retired while active services or employees still point at it.

from __future__ import annotations

import logging
from typing import Any

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient, utc_now
from src.api.error_handlers import NotFound, ReferencedRecordError
from src.api.pagination import LIKE_ESCAPE_SQL, PaginationSpec, like_pattern
from src.api.repositories import ActiveRecordRepository

logger = logging.getLogger(__name__)

_SUCURSAL_SELECT = """
SELECT s.id, s.nombre, s.ubicacion, s.activo, s.created_at, s.updated_at,
       (SELECT COUNT(*) FROM servicios sv WHERE sv.sucursal_id = s.id AND sv.activo = :counted_active)
           AS total_servicios,
       (SELECT COUNT(*) FROM empleados em WHERE em.sucursal_id = s.id AND em.activo = :counted_active)
           AS total_empleados
FROM sucursales s
"""


class SucursalService:
    """CRUD for shop branches."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient) -> None:
        self.config = config
        self.db = db
        self.repository = ActiveRecordRepository(
            db=db,
            table_name="sucursales",
            not_found_code="BRANCH_NOT_FOUND",
            not_found_message="Sucursal no encontrada",
        )
        self.servicios = ActiveRecordRepository(
            db=db,
            table_name="servicios",
            not_found_code="SERVICE_NOT_FOUND",
            not_found_message="Servicio no encontrado",
        )
        self.empleados = ActiveRecordRepository(
            db=db,
            table_name="empleados",
            not_found_code="EMPLOYEE_NOT_FOUND",
            not_found_message="Empleado no encontrado",
        )

    def list_sucursales(
        self,
        *,
        search: str | None,
        activo: bool | None,
        pagination: PaginationSpec,
    ) -> dict[str, Any]:
        where_clauses: list[str] = ["1 = 1"]
        params: dict[str, Any] = {}
        if search:
            params["search"] = like_pattern(search)
            where_clauses.append(
                f"(s.nombre LIKE :search {LIKE_ESCAPE_SQL} OR s.ubicacion LIKE :search {LIKE_ESCAPE_SQL})"
            )
        if activo is not None:
            where_clauses.append("s.activo = :activo")
            params["activo"] = activo

        where_sql = " AND ".join(where_clauses)
        total_count = int(self.db.fetch_scalar(f"SELECT COUNT(*) FROM sucursales s WHERE {where_sql}", params) or 0)
        rows = self.db.fetch_all(
            f"""
            {_SUCURSAL_SELECT}
            WHERE {where_sql}
            ORDER BY s.nombre ASC, s.id ASC
            LIMIT :limit OFFSET :offset
            """,
            {**params, "counted_active": True, "limit": pagination.page_size, "offset": pagination.offset},
        )
        return {"rows": rows, "total_count": total_count}

    def list_activas(self) -> list[dict[str, Any]]:
        return self.db.fetch_all(
            "SELECT id, nombre, ubicacion FROM sucursales WHERE activo = :activo ORDER BY nombre ASC",
            {"activo": True},
        )

    def get_sucursal(self, sucursal_id: int) -> dict[str, Any]:
        row = self.db.fetch_one(
            f"{_SUCURSAL_SELECT} WHERE s.id = :id",
            {"id": sucursal_id, "counted_active": True},
        )
        if row is None:
            raise NotFound(error_code="BRANCH_NOT_FOUND", message="Sucursal no encontrada")
        return row

    def create_sucursal(self, *, nombre: str, ubicacion: str | None) -> dict[str, Any]:
        self._ensure_nombre_free(nombre)
        now = utc_now()
        sucursal_id = self.repository.insert(
            {"nombre": nombre, "ubicacion": ubicacion, "activo": True, "created_at": now, "updated_at": now}
        )
        logger.info("Created sucursal id=%s", sucursal_id)
        return self.get_sucursal(sucursal_id)

    def update_sucursal(
        self,
        sucursal_id: int,
        *,
        nombre: str,
        ubicacion: str | None,
        activo: bool,
    ) -> dict[str, Any]:
        self.get_sucursal(sucursal_id)
        self._ensure_nombre_free(nombre, exclude_id=sucursal_id)
        self.repository.update(sucursal_id, {"nombre": nombre, "ubicacion": ubicacion, "activo": activo})
        return self.get_sucursal(sucursal_id)

    def delete_sucursal(self, sucursal_id: int) -> None:
        self.repository.get_active(sucursal_id)
        if self.servicios.count_active_where("sucursal_id", sucursal_id) > 0:
            raise ReferencedRecordError(
                error_code="SERVICES_ASSOCIATED",
                message="No se puede eliminar la sucursal porque tiene servicios asociados",
            )
        if self.empleados.count_active_where("sucursal_id", sucursal_id) > 0:
            raise ReferencedRecordError(
                error_code="EMPLOYEES_ASSOCIATED",
                message="No se puede eliminar la sucursal porque tiene empleados asociados",
            )
        self.repository.soft_delete(sucursal_id)

    def _ensure_nombre_free(self, nombre: str, *, exclude_id: int | None = None) -> None:
        self.repository.ensure_unique(
            "nombre",
            nombre,
            exclude_id=exclude_id,
            error_code="DUPLICATE_BRANCH_NAME",
            message="Ya existe una sucursal con este nombre",
        )
