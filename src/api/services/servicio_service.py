# This file implements the service aggregate writer and the service read models.
# It exists so a service, its employees, its line items, and their products are written as one unit.
# Every write runs in a single transaction; any failure rolls the whole aggregate back.
# Numbers come from a locked counter row so concurrent creators cannot draw the same value.

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient, TransactionScope, utc_now
from src.api.error_handlers import NotFound, ValidationError
from src.api.pagination import LIKE_ESCAPE_SQL, PaginationSpec, like_pattern
from src.api.schemas.servicio_schemas import ServicioInput
from src.api.services.cliente_service import full_name_condition
from src.common.tables import NUMERO_PREFIX, NUMERO_SEQUENCE, format_numero, highest_numero

logger = logging.getLogger(__name__)

DEFAULT_ITEM_DESCRIPTION = "Sin descripción"

_SERVICIO_SELECT = """
SELECT s.id, s.numero, s.cliente_id, s.vehiculo_id, s.sucursal_id, s.descripcion,
       s.observaciones, s.precio_referencia, s.activo, s.created_at, s.updated_at,
       c.nombre AS cliente_nombre, c.apellido AS cliente_apellido, c.dni AS cliente_dni,
       c.telefono AS cliente_telefono,
       v.patente, v.marca, v.modelo, v.anio,
       suc.nombre AS sucursal_nombre, suc.ubicacion AS sucursal_ubicacion,
       (SELECT COUNT(*) FROM servicio_items si WHERE si.servicio_id = s.id) AS items_count
FROM servicios s
LEFT JOIN clientes c ON c.id = s.cliente_id
LEFT JOIN vehiculos v ON v.id = s.vehiculo_id
LEFT JOIN sucursales suc ON suc.id = s.sucursal_id
"""


def validate_servicio_input(payload: ServicioInput) -> list[dict[str, str]]:
    """Collect every missing reference instead of stopping at the first."""

    errors: list[dict[str, str]] = []
    if payload.cliente_id is None:
        errors.append({"field": "cliente_id", "message": "Cliente ID es requerido"})
    if payload.vehiculo_id is None:
        errors.append({"field": "vehiculo_id", "message": "Vehículo ID es requerido"})
    if payload.sucursal_id is None:
        errors.append({"field": "sucursal_id", "message": "Sucursal ID es requerido"})
    if not payload.items:
        errors.append({"field": "items", "message": "Debe incluir al menos un item de servicio"})
    else:
        for index, item in enumerate(payload.items):
            if item.tipo_servicio_id is None:
                errors.append(
                    {
                        "field": f"items.{index}.tipo_servicio_id",
                        "message": "Tipo de servicio es requerido",
                    }
                )
    return errors


def _normalize_row(row: dict[str, Any]) -> dict[str, Any]:
    if row.get("precio_referencia") is not None:
        row["precio_referencia"] = float(row["precio_referencia"])
    if "activo" in row and row["activo"] is not None:
        row["activo"] = bool(row["activo"])
    return row


class ServicioService:
    """Transactional create/update/delete plus reads for service records."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient) -> None:
        self.config = config
        self.db = db

    def create_servicio(self, payload: ServicioInput) -> dict[str, Any]:
        errors = validate_servicio_input(payload)
        if errors:
            raise ValidationError.for_fields(errors)

        try:
            with self.db.transaction() as tx:
                numero = self._next_numero(tx)
                now = utc_now()
                servicio_id = tx.insert(
                    """
                    INSERT INTO servicios (
                        numero, cliente_id, vehiculo_id, sucursal_id, descripcion,
                        observaciones, precio_referencia, activo, created_at, updated_at
                    ) VALUES (
                        :numero, :cliente_id, :vehiculo_id, :sucursal_id, :descripcion,
                        :observaciones, :precio_referencia, :activo, :created_at, :updated_at
                    )
                    """,
                    {
                        **self._core_values(payload),
                        "numero": numero,
                        "activo": True,
                        "created_at": now,
                        "updated_at": now,
                    },
                )
                self._write_children(tx, servicio_id, payload)
        except Exception as exc:
            logger.warning("Servicio create rolled back: %s", exc)
            raise

        logger.info("Created servicio id=%s numero=%s items=%s", servicio_id, numero, len(payload.items or []))
        return self.get_servicio(servicio_id)

    def update_servicio(self, servicio_id: int, payload: ServicioInput) -> dict[str, Any]:
        errors = validate_servicio_input(payload)
        if errors:
            raise ValidationError.for_fields(errors)

        try:
            with self.db.transaction() as tx:
                self._ensure_exists(tx, servicio_id)
                self._delete_children(tx, servicio_id)
                tx.execute(
                    """
                    UPDATE servicios
                    SET cliente_id = :cliente_id, vehiculo_id = :vehiculo_id, sucursal_id = :sucursal_id,
                        descripcion = :descripcion, observaciones = :observaciones,
                        precio_referencia = :precio_referencia, updated_at = :updated_at
                    WHERE id = :id
                    """,
                    {**self._core_values(payload), "updated_at": utc_now(), "id": servicio_id},
                )
                self._write_children(tx, servicio_id, payload)
        except NotFound:
            raise
        except Exception as exc:
            logger.warning("Servicio update id=%s rolled back: %s", servicio_id, exc)
            raise

        logger.info("Updated servicio id=%s items=%s", servicio_id, len(payload.items or []))
        return self.get_servicio(servicio_id)

    def delete_servicio(self, servicio_id: int) -> None:
        """Hard delete the aggregate, children before parent."""

        try:
            with self.db.transaction() as tx:
                self._ensure_exists(tx, servicio_id)
                self._delete_children(tx, servicio_id)
                tx.execute("DELETE FROM servicios WHERE id = :id", {"id": servicio_id})
        except NotFound:
            raise
        except Exception as exc:
            logger.warning("Servicio delete id=%s rolled back: %s", servicio_id, exc)
            raise

        logger.info("Deleted servicio id=%s", servicio_id)

    def get_servicio(self, servicio_id: int) -> dict[str, Any]:
        row = self.db.fetch_one(
            f"{_SERVICIO_SELECT} WHERE s.id = :id AND s.activo = :activo",
            {"id": servicio_id, "activo": True},
        )
        if row is None:
            raise NotFound(error_code="SERVICE_NOT_FOUND", message="Servicio no encontrado")

        servicio = _normalize_row(row)
        servicio["empleados"] = self.db.fetch_all(
            """
            SELECT e.id, e.nombre, e.apellido, e.cargo
            FROM servicio_empleados se
            INNER JOIN empleados e ON e.id = se.empleado_id
            WHERE se.servicio_id = :id AND e.activo = :activo
            ORDER BY e.nombre, e.apellido
            """,
            {"id": servicio_id, "activo": True},
        )

        items = self.db.fetch_all(
            """
            SELECT si.id, si.servicio_id, si.tipo_servicio_id, si.descripcion, si.observaciones, si.notas,
                   ts.nombre AS tipo_servicio_nombre, ts.descripcion AS tipo_servicio_descripcion
            FROM servicio_items si
            LEFT JOIN tipos_servicios ts ON ts.id = si.tipo_servicio_id
            WHERE si.servicio_id = :id
            ORDER BY si.id
            """,
            {"id": servicio_id},
        )
        productos = self.db.fetch_all(
            """
            SELECT p.id, p.servicio_item_id, p.nombre, p.es_nuestro
            FROM productos p
            INNER JOIN servicio_items si ON si.id = p.servicio_item_id
            WHERE si.servicio_id = :id
            ORDER BY p.id
            """,
            {"id": servicio_id},
        )
        by_item: dict[int, list[dict[str, Any]]] = {}
        for producto in productos:
            producto["es_nuestro"] = bool(producto["es_nuestro"])
            by_item.setdefault(int(producto["servicio_item_id"]), []).append(producto)
        for item in items:
            item["productos"] = by_item.get(int(item["id"]), [])

        servicio["items"] = items
        return servicio

    def list_servicios(
        self,
        *,
        search: str | None,
        cliente_id: int | None,
        vehiculo_id: int | None,
        pagination: PaginationSpec,
    ) -> dict[str, Any]:
        where_clauses: list[str] = ["s.activo = :activo"]
        params: dict[str, Any] = {"activo": True}

        if search:
            params["search"] = like_pattern(search)
            like = f"LIKE :search {LIKE_ESCAPE_SQL}"
            full_name = full_name_condition(
                nombre_column="c.nombre", apellido_column="c.apellido", term=search, params=params
            )
            where_clauses.append(
                f"(s.numero {like} OR c.nombre {like} OR c.apellido {like} OR v.patente {like} OR {full_name})"
            )
        if cliente_id is not None:
            where_clauses.append("s.cliente_id = :cliente_id")
            params["cliente_id"] = cliente_id
        if vehiculo_id is not None:
            where_clauses.append("s.vehiculo_id = :vehiculo_id")
            params["vehiculo_id"] = vehiculo_id

        where_sql = " AND ".join(where_clauses)
        total_count = int(
            self.db.fetch_scalar(
                f"""
                SELECT COUNT(*)
                FROM servicios s
                LEFT JOIN clientes c ON c.id = s.cliente_id
                LEFT JOIN vehiculos v ON v.id = s.vehiculo_id
                WHERE {where_sql}
                """,
                params,
            )
            or 0
        )
        rows = self.db.fetch_all(
            f"""
            {_SERVICIO_SELECT}
            WHERE {where_sql}
            ORDER BY s.created_at DESC, s.id DESC
            LIMIT :limit OFFSET :offset
            """,
            {**params, "limit": pagination.page_size, "offset": pagination.offset},
        )
        return {"rows": [_normalize_row(row) for row in rows], "total_count": total_count}

    def list_by_cliente(self, cliente_id: int) -> list[dict[str, Any]]:
        rows = self.db.fetch_all(
            f"""
            {_SERVICIO_SELECT}
            WHERE s.activo = :activo AND s.cliente_id = :cliente_id
            ORDER BY s.created_at DESC, s.id DESC
            """,
            {"activo": True, "cliente_id": cliente_id},
        )
        return [_normalize_row(row) for row in rows]

    def list_by_patente(self, patente: str) -> list[dict[str, Any]]:
        rows = self.db.fetch_all(
            f"""
            {_SERVICIO_SELECT}
            WHERE s.activo = :activo AND v.patente = :patente
            ORDER BY s.created_at DESC, s.id DESC
            """,
            {"activo": True, "patente": patente.strip().upper()},
        )
        return [_normalize_row(row) for row in rows]

    def get_estadisticas(self, *, now: datetime | None = None) -> dict[str, int]:
        current = now or utc_now()
        start_of_day = current.replace(hour=0, minute=0, second=0, microsecond=0)
        start_of_week = start_of_day - timedelta(days=start_of_day.weekday())
        start_of_month = start_of_day.replace(day=1)

        row = self.db.fetch_one(
            """
            SELECT
                COUNT(*) AS total,
                SUM(CASE WHEN created_at >= :day THEN 1 ELSE 0 END) AS servicios_hoy,
                SUM(CASE WHEN created_at >= :week THEN 1 ELSE 0 END) AS servicios_semana,
                SUM(CASE WHEN created_at >= :month THEN 1 ELSE 0 END) AS servicios_mes
            FROM servicios
            WHERE activo = :activo
            """,
            {"day": start_of_day, "week": start_of_week, "month": start_of_month, "activo": True},
        ) or {}
        return {
            key: int(row.get(key) or 0)
            for key in ("total", "servicios_hoy", "servicios_semana", "servicios_mes")
        }

    def _next_numero(self, tx: TransactionScope) -> str:
        """Draw the next number while holding the counter row lock until commit."""

        bumped = tx.execute(
            "UPDATE secuencias SET ultimo_valor = ultimo_valor + 1 WHERE nombre = :nombre",
            {"nombre": NUMERO_SEQUENCE},
        )
        if bumped == 0:
            raise RuntimeError(
                f"Counter row {NUMERO_SEQUENCE!r} is missing from secuencias; run scripts/init_db.py"
            )
        highest_existing = self._max_existing_suffix(tx)

        value = int(
            tx.fetch_scalar(
                "SELECT ultimo_valor FROM secuencias WHERE nombre = :nombre",
                {"nombre": NUMERO_SEQUENCE},
            )
        )
        if value <= highest_existing:
            value = highest_existing + 1
            tx.execute(
                "UPDATE secuencias SET ultimo_valor = :valor WHERE nombre = :nombre",
                {"nombre": NUMERO_SEQUENCE, "valor": value},
            )
        return format_numero(value)

    @staticmethod
    def _max_existing_suffix(tx: TransactionScope) -> int:
        rows = tx.fetch_all(
            "SELECT numero FROM servicios WHERE numero LIKE :prefix",
            {"prefix": f"{NUMERO_PREFIX}%"},
        )
        return highest_numero(row["numero"] for row in rows)

    @staticmethod
    def _ensure_exists(tx: TransactionScope, servicio_id: int) -> None:
        found = tx.fetch_scalar(
            "SELECT COUNT(*) FROM servicios WHERE id = :id AND activo = :activo",
            {"id": servicio_id, "activo": True},
        )
        if int(found or 0) == 0:
            raise NotFound(error_code="SERVICE_NOT_FOUND", message="Servicio no encontrado")

    @staticmethod
    def _core_values(payload: ServicioInput) -> dict[str, Any]:
        return {
            "cliente_id": payload.cliente_id,
            "vehiculo_id": payload.vehiculo_id,
            "sucursal_id": payload.sucursal_id,
            "descripcion": payload.descripcion or None,
            "observaciones": payload.observaciones or None,
            "precio_referencia": payload.precio_referencia or 0,
        }

    @staticmethod
    def _write_children(tx: TransactionScope, servicio_id: int, payload: ServicioInput) -> None:
        for empleado_id in payload.empleados:
            tx.execute(
                "INSERT INTO servicio_empleados (servicio_id, empleado_id) VALUES (:servicio_id, :empleado_id)",
                {"servicio_id": servicio_id, "empleado_id": empleado_id},
            )

        for item in payload.items or []:
            item_id = tx.insert(
                """
                INSERT INTO servicio_items (servicio_id, tipo_servicio_id, descripcion, observaciones, notas)
                VALUES (:servicio_id, :tipo_servicio_id, :descripcion, :observaciones, :notas)
                """,
                {
                    "servicio_id": servicio_id,
                    "tipo_servicio_id": item.tipo_servicio_id,
                    "descripcion": item.descripcion or DEFAULT_ITEM_DESCRIPTION,
                    "observaciones": item.observaciones or None,
                    "notas": item.notas or None,
                },
            )
            for producto in item.productos:
                tx.execute(
                    """
                    INSERT INTO productos (servicio_item_id, nombre, es_nuestro)
                    VALUES (:servicio_item_id, :nombre, :es_nuestro)
                    """,
                    {"servicio_item_id": item_id, "nombre": producto.nombre, "es_nuestro": producto.es_nuestro},
                )

    @staticmethod
    def _delete_children(tx: TransactionScope, servicio_id: int) -> None:
        tx.execute("DELETE FROM servicio_empleados WHERE servicio_id = :id", {"id": servicio_id})
        tx.execute(
            """
            DELETE FROM productos
            WHERE servicio_item_id IN (SELECT id FROM servicio_items WHERE servicio_id = :id)
            """,
            {"id": servicio_id},
        )
        tx.execute("DELETE FROM servicio_items WHERE servicio_id = :id", {"id": servicio_id})
