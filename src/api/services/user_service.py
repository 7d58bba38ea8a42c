# This file implements admin user management over the `usuarios` table.
# It exists so routers can stay transport-focused while SQL and row shaping live in one layer.
# Users are never hard-deleted; deactivation also revokes their open sessions.

from __future__ import annotations

import logging
from typing import Any

from src.api.api_config import ApiConfig
from src.api.authorization import Role
from src.api.db_access import DatabaseClient, utc_now
from src.api.error_handlers import Conflict, NotFound, ValidationError
from src.api.pagination import LIKE_ESCAPE_SQL, PaginationSpec, like_pattern
from src.api.repositories import ActiveRecordRepository
from src.api.security import PasswordHasher
from src.api.services.auth_service import public_user

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, nombre, email, rol, activo, creado_en, actualizado_en, ultimo_login"


class UserService:
    """Admin CRUD for application users."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient, hasher: PasswordHasher) -> None:
        self.config = config
        self.db = db
        self.hasher = hasher
        self.repository = ActiveRecordRepository(
            db=db,
            table_name="usuarios",
            not_found_code="USER_NOT_FOUND",
            not_found_message="Usuario no encontrado",
            updated_column="actualizado_en",
        )

    def list_users(
        self,
        *,
        search: str | None,
        rol: Role | None,
        pagination: PaginationSpec,
    ) -> dict[str, Any]:
        where_clauses: list[str] = ["1 = 1"]
        params: dict[str, Any] = {}

        if search:
            where_clauses.append(f"(nombre LIKE :search {LIKE_ESCAPE_SQL} OR email LIKE :search {LIKE_ESCAPE_SQL})")
            params["search"] = like_pattern(search)
        if rol is not None:
            where_clauses.append("rol = :rol")
            params["rol"] = Role(rol).value

        where_sql = " AND ".join(where_clauses)
        total_count = int(self.db.fetch_scalar(f"SELECT COUNT(*) FROM usuarios WHERE {where_sql}", params) or 0)

        rows = self.db.fetch_all(
            f"""
            SELECT {_USER_COLUMNS}
            FROM usuarios
            WHERE {where_sql}
            ORDER BY creado_en DESC, id DESC
            LIMIT :limit OFFSET :offset
            """,
            {**params, "limit": pagination.page_size, "offset": pagination.offset},
        )
        return {"rows": [self._shape(row) for row in rows], "total_count": total_count}

    def get_user(self, user_id: int) -> dict[str, Any]:
        row = self.db.fetch_one(f"SELECT {_USER_COLUMNS} FROM usuarios WHERE id = :id", {"id": user_id})
        if row is None:
            raise NotFound(error_code="USER_NOT_FOUND", message="Usuario no encontrado")
        return self._shape(row)

    def create_user(self, *, nombre: str, email: str, password: str, rol: Role) -> dict[str, Any]:
        self._ensure_email_free(email)
        user_id = self.db.insert(
            """
            INSERT INTO usuarios (nombre, email, password, rol, activo, creado_en)
            VALUES (:nombre, :email, :password, :rol, :activo, :creado_en)
            """,
            {
                "nombre": nombre,
                "email": email,
                "password": self.hasher.hash(password),
                "rol": Role(rol).value,
                "activo": True,
                "creado_en": utc_now(),
            },
        )
        logger.info("Created user id=%s email=%s", user_id, email)
        return self.get_user(user_id)

    def update_user(
        self,
        user_id: int,
        *,
        nombre: str,
        email: str,
        rol: Role,
        activo: bool,
    ) -> dict[str, Any]:
        self.get_user(user_id)
        self._ensure_email_free(email, exclude_id=user_id)

        with self.db.transaction() as tx:
            self.repository.update(
                user_id,
                {"nombre": nombre, "email": email, "rol": Role(rol).value, "activo": activo},
                executor=tx,
            )
            if not activo:
                tx.execute("DELETE FROM sesiones WHERE usuario_id = :id", {"id": user_id})
        return self.get_user(user_id)

    def delete_user(self, user_id: int, *, acting_user_id: int) -> None:
        if user_id == acting_user_id:
            raise ValidationError(error_code="SELF_DELETE", message="No puedes eliminar tu propio usuario")
        self.get_user(user_id)
        with self.db.transaction() as tx:
            tx.execute(
                "UPDATE usuarios SET activo = :inactive, actualizado_en = :now WHERE id = :id",
                {"inactive": False, "now": utc_now(), "id": user_id},
            )
            tx.execute("DELETE FROM sesiones WHERE usuario_id = :id", {"id": user_id})
        logger.info("Deactivated user id=%s", user_id)

    def _ensure_email_free(self, email: str, *, exclude_id: int | None = None) -> None:
        self.repository.ensure_unique(
            "email",
            email,
            exclude_id=exclude_id,
            error_code="EMAIL_ALREADY_EXISTS",
            message="El email ya está registrado",
            active_only=False,
        )

    @staticmethod
    def _shape(row: dict[str, Any]) -> dict[str, Any]:
        shaped = public_user(row)
        shaped["actualizado_en"] = row.get("actualizado_en")
        return shaped
