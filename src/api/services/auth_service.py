# This file implements the session-backed authentication engine.
# It exists so credential checks, token issuance, and revocation share one consistent state model.
# A token is honoured only while its signature is valid and a matching unexpired session row exists.
# Sessions store the SHA-256 digest of the token, never the token itself.

from __future__ import annotations

import logging
from datetime import UTC, timedelta
from typing import Any

from src.api.api_config import ApiConfig
from src.api.authorization import AuthenticatedUser, Role
from src.api.db_access import DatabaseClient, utc_now
from src.api.error_handlers import (
    Conflict,
    InvalidCredentials,
    NotFound,
    SessionExpiredOrRevoked,
    Unauthorized,
    ValidationError,
)
from src.api.security import PasswordHasher, create_access_token, decode_access_token, hash_token

logger = logging.getLogger(__name__)

_PUBLIC_USER_COLUMNS = "id, nombre, email, rol, activo, creado_en, ultimo_login"


def public_user(row: dict[str, Any]) -> dict[str, Any]:
    """Shape a `usuarios` row for clients: `rol` is exposed as `role`, password never leaves."""

    return {
        "id": row["id"],
        "nombre": row["nombre"],
        "email": row["email"],
        "role": row["rol"],
        "activo": bool(row["activo"]) if row.get("activo") is not None else None,
        "creado_en": row.get("creado_en"),
        "ultimo_login": row.get("ultimo_login"),
    }


class AuthService:
    """Login, per-request verification, logout, and credential changes."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient, hasher: PasswordHasher) -> None:
        self.config = config
        self.db = db
        self.hasher = hasher

    def login(
        self,
        *,
        email: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> dict[str, Any]:
        user = self.db.fetch_one(
            "SELECT * FROM usuarios WHERE email = :email AND activo = :activo",
            {"email": email, "activo": True},
        )
        if user is None:
            self.hasher.dummy_verify()
            logger.info("Login rejected for %s: unknown or inactive user", email)
            raise InvalidCredentials()
        if not self.hasher.verify(password, user["password"]):
            logger.info("Login rejected for %s: wrong password", email)
            raise InvalidCredentials()

        token, expires_at = create_access_token(
            user_id=int(user["id"]),
            email=user["email"],
            role=user["rol"],
            secret=self.config.jwt_secret,
            algorithm=self.config.jwt_algorithm,
            lifetime=timedelta(hours=self.config.token_lifetime_hours),
        )
        now = utc_now()
        with self.db.transaction() as tx:
            tx.insert(
                """
                INSERT INTO sesiones (usuario_id, token_hash, ip_address, user_agent, expires_at, created_at)
                VALUES (:usuario_id, :token_hash, :ip_address, :user_agent, :expires_at, :created_at)
                """,
                {
                    "usuario_id": user["id"],
                    "token_hash": hash_token(token),
                    "ip_address": ip_address,
                    "user_agent": (user_agent or "Unknown")[:255],
                    "expires_at": expires_at.astimezone(UTC).replace(tzinfo=None),
                    "created_at": now,
                },
            )
            tx.execute(
                "UPDATE usuarios SET ultimo_login = :now WHERE id = :id",
                {"now": now, "id": user["id"]},
            )

        user["ultimo_login"] = now
        logger.info("User %s logged in from %s", user["email"], ip_address or "unknown")
        return {"user": public_user(user), "token": token, "expires_at": expires_at}

    def verify(self, token: str) -> AuthenticatedUser:
        """Check signature, then the persisted session, then the owning user."""

        claims = decode_access_token(
            token,
            secret=self.config.jwt_secret,
            algorithm=self.config.jwt_algorithm,
        )
        token_digest = hash_token(token)
        row = self.db.fetch_one(
            """
            SELECT u.id, u.email, u.nombre, u.rol, u.activo
            FROM sesiones s
            INNER JOIN usuarios u ON u.id = s.usuario_id
            WHERE s.token_hash = :token_hash AND s.expires_at > :now
            """,
            {"token_hash": token_digest, "now": utc_now()},
        )
        if row is None:
            raise SessionExpiredOrRevoked()
        if not row["activo"]:
            raise Unauthorized(error_code="USER_INACTIVE", message="Usuario inactivo")
        if int(row["id"]) != int(claims["id"]):
            raise SessionExpiredOrRevoked()

        try:
            role = Role(row["rol"])
        except ValueError as exc:
            raise Unauthorized(message="Rol de usuario desconocido") from exc

        return AuthenticatedUser(
            id=int(row["id"]),
            email=row["email"],
            role=role,
            nombre=row["nombre"],
            token_hash=token_digest,
        )

    def logout(self, token: str) -> None:
        removed = self.db.execute(
            "DELETE FROM sesiones WHERE token_hash = :token_hash",
            {"token_hash": hash_token(token)},
        )
        logger.info("Logout removed %s session(s)", removed)

    def get_profile(self, user_id: int) -> dict[str, Any]:
        row = self.db.fetch_one(
            f"SELECT {_PUBLIC_USER_COLUMNS} FROM usuarios WHERE id = :id",
            {"id": user_id},
        )
        if row is None:
            raise NotFound(error_code="USER_NOT_FOUND", message="Usuario no encontrado")
        return public_user(row)

    def change_password(
        self,
        *,
        user_id: int,
        current_password: str,
        new_password: str,
        keep_token_hash: str | None = None,
    ) -> int:
        """Swap the password hash and revoke every other session of the user.

        Returns the number of revoked sessions.
        """

        row = self.db.fetch_one("SELECT password FROM usuarios WHERE id = :id", {"id": user_id})
        if row is None:
            raise NotFound(error_code="USER_NOT_FOUND", message="Usuario no encontrado")
        if not self.hasher.verify(current_password, row["password"]):
            raise InvalidCredentials(
                message="Contraseña actual incorrecta",
                details=[{"field": "currentPassword", "message": "Contraseña actual incorrecta"}],
            )

        new_hash = self.hasher.hash(new_password)
        with self.db.transaction() as tx:
            tx.execute(
                "UPDATE usuarios SET password = :password, actualizado_en = :now WHERE id = :id",
                {"password": new_hash, "now": utc_now(), "id": user_id},
            )
            if keep_token_hash is None:
                revoked = tx.execute("DELETE FROM sesiones WHERE usuario_id = :id", {"id": user_id})
            else:
                revoked = tx.execute(
                    "DELETE FROM sesiones WHERE usuario_id = :id AND token_hash <> :keep",
                    {"id": user_id, "keep": keep_token_hash},
                )

        logger.info("Password changed for user id=%s; revoked %s other session(s)", user_id, revoked)
        return revoked

    def register(self, *, nombre: str, email: str, password: str, rol: Role) -> dict[str, Any]:
        problems = [
            {"field": name, "message": f"{name} es requerido"}
            for name, value in (("nombre", nombre), ("email", email), ("password", password))
            if not value
        ]
        if problems:
            raise ValidationError.for_fields(problems)

        exists = self.db.fetch_scalar("SELECT COUNT(*) FROM usuarios WHERE email = :email", {"email": email})
        if int(exists or 0) > 0:
            raise Conflict(error_code="EMAIL_ALREADY_EXISTS", message="El email ya está registrado")

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
        logger.info("Registered user id=%s email=%s", user_id, email)
        return {"id": user_id, "nombre": nombre, "email": email, "role": Role(rol).value}
