# This file implements employee management; employees belong to a branch.
# It exists so routers can stay transport-focused while SQL and row shaping live in one layer.

from __future__ import annotations

import logging
from typing import Any

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient, utc_now
from src.api.error_handlers import NotFound, ValidationError
from src.api.pagination import LIKE_ESCAPE_SQL, PaginationSpec, like_pattern
from src.api.repositories import ActiveRecordRepository

logger = logging.getLogger(__name__)

_EMPLEADO_SELECT = """
SELECT e.id, e.nombre, e.apellido, e.telefono, e.cargo, e.sucursal_id, e.activo,
       e.created_at, e.updated_at, s.nombre AS sucursal_nombre
FROM empleados e
LEFT JOIN sucursales s ON s.id = e.sucursal_id
"""


class EmpleadoService:
    """CRUD for employees."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient) -> None:
        self.config = config
        self.db = db
        self.repository = ActiveRecordRepository(
            db=db,
            table_name="empleados",
            not_found_code="EMPLOYEE_NOT_FOUND",
            not_found_message="Empleado no encontrado",
        )
        self.sucursales = ActiveRecordRepository(
            db=db,
            table_name="sucursales",
            not_found_code="BRANCH_NOT_FOUND",
            not_found_message="Sucursal no encontrada",
        )

    def list_empleados(
        self,
        *,
        search: str | None,
        sucursal_id: int | None,
        pagination: PaginationSpec,
    ) -> dict[str, Any]:
        where_clauses: list[str] = ["e.activo = :activo"]
        params: dict[str, Any] = {"activo": True}
        if search:
            params["search"] = like_pattern(search)
            like = f"LIKE :search {LIKE_ESCAPE_SQL}"
            where_clauses.append(f"(e.nombre {like} OR e.apellido {like} OR e.cargo {like})")
        if sucursal_id is not None:
            where_clauses.append("e.sucursal_id = :sucursal_id")
            params["sucursal_id"] = sucursal_id

        where_sql = " AND ".join(where_clauses)
        total_count = int(self.db.fetch_scalar(f"SELECT COUNT(*) FROM empleados e WHERE {where_sql}", params) or 0)
        rows = self.db.fetch_all(
            f"""
            {_EMPLEADO_SELECT}
            WHERE {where_sql}
            ORDER BY e.nombre ASC, e.apellido ASC, e.id ASC
            LIMIT :limit OFFSET :offset
            """,
            {**params, "limit": pagination.page_size, "offset": pagination.offset},
        )
        return {"rows": rows, "total_count": total_count}

    def list_activos(self) -> list[dict[str, Any]]:
        return self.db.fetch_all(
            f"{_EMPLEADO_SELECT} WHERE e.activo = :activo ORDER BY e.nombre ASC, e.apellido ASC",
            {"activo": True},
        )

    def list_by_sucursal(self, sucursal_id: int) -> list[dict[str, Any]]:
        return self.db.fetch_all(
            f"""
            {_EMPLEADO_SELECT}
            WHERE e.activo = :activo AND e.sucursal_id = :sucursal_id
            ORDER BY e.nombre ASC, e.apellido ASC
            """,
            {"activo": True, "sucursal_id": sucursal_id},
        )

    def get_empleado(self, empleado_id: int) -> dict[str, Any]:
        row = self.db.fetch_one(
            f"{_EMPLEADO_SELECT} WHERE e.id = :id AND e.activo = :activo",
            {"id": empleado_id, "activo": True},
        )
        if row is None:
            raise NotFound(error_code="EMPLOYEE_NOT_FOUND", message="Empleado no encontrado")
        return row

    def create_empleado(self, values: dict[str, Any]) -> dict[str, Any]:
        self._ensure_sucursal_active(int(values["sucursal_id"]))
        now = utc_now()
        empleado_id = self.repository.insert(
            {
                "nombre": values["nombre"],
                "apellido": values["apellido"],
                "telefono": values.get("telefono"),
                "cargo": values.get("cargo"),
                "sucursal_id": int(values["sucursal_id"]),
                "activo": True,
                "created_at": now,
                "updated_at": now,
            }
        )
        logger.info("Created empleado id=%s", empleado_id)
        return self.get_empleado(empleado_id)

    def update_empleado(self, empleado_id: int, values: dict[str, Any]) -> dict[str, Any]:
        self.repository.get_active(empleado_id)
        self._ensure_sucursal_active(int(values["sucursal_id"]))
        activo = bool(values.get("activo", True))
        self.repository.update(
            empleado_id,
            {
                "nombre": values["nombre"],
                "apellido": values["apellido"],
                "telefono": values.get("telefono"),
                "cargo": values.get("cargo"),
                "sucursal_id": int(values["sucursal_id"]),
                "activo": activo,
            },
        )
        if not activo:
            logger.info("Deactivated empleado id=%s via update", empleado_id)
            return {"id": empleado_id, "activo": False}
        return self.get_empleado(empleado_id)

    def delete_empleado(self, empleado_id: int) -> None:
        self.repository.soft_delete(empleado_id)

    def _ensure_sucursal_active(self, sucursal_id: int) -> None:
        if not self.sucursales.exists_active(sucursal_id):
            raise ValidationError.single("sucursal_id", "Sucursal no encontrada")
