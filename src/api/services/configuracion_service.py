# This file implements the admin configuration store keyed by category and key.
# It exists so routers can stay transport-focused while SQL and row shaping live in one layer.
# Bulk updates upsert every entry inside one transaction.

from __future__ import annotations

import logging
from typing import Any

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient, TransactionScope, utc_now
from src.api.error_handlers import Conflict, NotFound
from src.api.schemas.configuracion_schemas import ConfiguracionEntry

logger = logging.getLogger(__name__)

_CONFIG_COLUMNS = "id, categoria, clave, valor, tipo, descripcion, created_at, updated_at"


class ConfiguracionService:
    """Typed key/value settings editable by administrators."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient) -> None:
        self.config = config
        self.db = db

    def list_all(self) -> list[dict[str, Any]]:
        return self.db.fetch_all(f"SELECT {_CONFIG_COLUMNS} FROM configuracion ORDER BY categoria, clave")

    def list_by_categoria(self, categoria: str) -> list[dict[str, Any]]:
        return self.db.fetch_all(
            f"SELECT {_CONFIG_COLUMNS} FROM configuracion WHERE categoria = :categoria ORDER BY clave",
            {"categoria": categoria},
        )

    def create(self, entry: ConfiguracionEntry) -> dict[str, Any]:
        existing = self._find(self.db, entry.categoria, entry.clave)
        if existing is not None:
            raise Conflict(
                error_code="DUPLICATE_CONFIG",
                message="Ya existe una configuración con esa categoría y clave",
            )
        now = utc_now()
        config_id = self.db.insert(
            """
            INSERT INTO configuracion (categoria, clave, valor, tipo, descripcion, created_at, updated_at)
            VALUES (:categoria, :clave, :valor, :tipo, :descripcion, :created_at, :updated_at)
            """,
            {**entry.model_dump(), "created_at": now, "updated_at": now},
        )
        logger.info("Created configuracion %s.%s", entry.categoria, entry.clave)
        return self._get(config_id)

    def bulk_upsert(self, entries: list[ConfiguracionEntry]) -> list[dict[str, Any]]:
        now = utc_now()
        with self.db.transaction() as tx:
            for entry in entries:
                existing = self._find(tx, entry.categoria, entry.clave)
                if existing is None:
                    tx.insert(
                        """
                        INSERT INTO configuracion (categoria, clave, valor, tipo, descripcion, created_at, updated_at)
                        VALUES (:categoria, :clave, :valor, :tipo, :descripcion, :created_at, :updated_at)
                        """,
                        {**entry.model_dump(), "created_at": now, "updated_at": now},
                    )
                    continue
                tx.execute(
                    """
                    UPDATE configuracion
                    SET valor = :valor, tipo = :tipo,
                        descripcion = COALESCE(:descripcion, descripcion), updated_at = :updated_at
                    WHERE id = :id
                    """,
                    {
                        "valor": entry.valor,
                        "tipo": entry.tipo,
                        "descripcion": entry.descripcion,
                        "updated_at": now,
                        "id": existing["id"],
                    },
                )
        logger.info("Upserted %s configuracion entries", len(entries))
        return self.list_all()

    def delete(self, config_id: int) -> None:
        removed = self.db.execute("DELETE FROM configuracion WHERE id = :id", {"id": config_id})
        if removed == 0:
            raise NotFound(error_code="CONFIG_NOT_FOUND", message="Configuración no encontrada")
        logger.info("Deleted configuracion id=%s", config_id)

    def _get(self, config_id: int) -> dict[str, Any]:
        row = self.db.fetch_one(f"SELECT {_CONFIG_COLUMNS} FROM configuracion WHERE id = :id", {"id": config_id})
        if row is None:
            raise NotFound(error_code="CONFIG_NOT_FOUND", message="Configuración no encontrada")
        return row

    @staticmethod
    def _find(
        executor: DatabaseClient | TransactionScope,
        categoria: str,
        clave: str,
    ) -> dict[str, Any] | None:
        return executor.fetch_one(
            "SELECT id FROM configuracion WHERE categoria = :categoria AND clave = :clave",
            {"categoria": categoria, "clave": clave},
        )
