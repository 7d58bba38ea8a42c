# This file holds the cryptographic primitives used by authentication.
# It exists so password hashing, token signing, and token fingerprints live behind one small surface.
# Tokens are HS256 JWTs carrying id, email, and role; only their SHA-256 digest is ever persisted.
# Decoding distinguishes an expired signature from any other structural failure.

from __future__ import annotations

import hashlib
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from src.api.error_handlers import ExpiredToken, InvalidToken


class PasswordHasher:
    """bcrypt hashing with a configurable cost factor."""

    def __init__(self, *, rounds: int = 12) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return self._context.verify(password, hashed)
        except ValueError:
            return False

    def dummy_verify(self) -> None:
        """Spend one verification worth of time when no user matched."""

        self._context.dummy_verify()


def hash_token(token: str) -> str:
    """One-way fingerprint stored in `sesiones.token_hash`."""

    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_access_token(
    *,
    user_id: int,
    email: str,
    role: str,
    secret: str,
    algorithm: str = "HS256",
    lifetime: timedelta = timedelta(hours=24),
    now: datetime | None = None,
) -> tuple[str, datetime]:
    """Sign a token and return it together with its expiry instant."""

    issued_at = now or datetime.now(tz=UTC)
    expires_at = issued_at + lifetime
    claims: dict[str, Any] = {
        "id": user_id,
        "email": email,
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, secret, algorithm=algorithm), expires_at


def decode_access_token(token: str, *, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm])
    except ExpiredSignatureError as exc:
        raise ExpiredToken() from exc
    except JWTError as exc:
        raise InvalidToken() from exc

    if not isinstance(claims.get("id"), int) or not claims.get("role"):
        raise InvalidToken()
    return claims
