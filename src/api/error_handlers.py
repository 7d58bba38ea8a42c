# This file defines consistent API error payloads and exception handlers.
# It exists so every endpoint returns the same error shape with a stable machine-readable code.
# The handlers translate validation, HTTP, database, and unexpected failures into safe client messages.
# Exception detail and stack traces are only exposed to clients in development mode.

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DisconnectionError, IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_MYSQL_DUPLICATE_ENTRY = 1062
_MYSQL_ROW_IS_REFERENCED = {1451, 1217}
_MYSQL_NO_REFERENCED_ROW = {1452, 1216}


class APIError(Exception):
    """Domain error type with structured API details."""

    status_code = 500
    default_code = "INTERNAL_SERVER_ERROR"
    default_message = "Error interno del servidor"

    def __init__(
        self,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
        message: str | None = None,
        details: Any | None = None,
    ) -> None:
        self.status_code = status_code or type(self).status_code
        self.error_code = error_code or type(self).default_code
        self.message = message or type(self).default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(APIError):
    status_code = 400
    default_code = "VALIDATION_ERROR"
    default_message = "Datos de entrada inválidos"

    @classmethod
    def for_fields(cls, errors: list[dict[str, str]]) -> ValidationError:
        return cls(details=errors)

    @classmethod
    def single(cls, field: str, message: str) -> ValidationError:
        return cls(message=message, details=[{"field": field, "message": message}])


class InvalidCredentials(APIError):
    status_code = 401
    default_code = "INVALID_CREDENTIALS"
    default_message = "Credenciales inválidas"


class Unauthorized(APIError):
    status_code = 401
    default_code = "UNAUTHORIZED"
    default_message = "No autorizado"


class InvalidToken(APIError):
    status_code = 401
    default_code = "INVALID_TOKEN"
    default_message = "Token inválido"


class ExpiredToken(APIError):
    status_code = 401
    default_code = "TOKEN_EXPIRED"
    default_message = "Token expirado"


class SessionExpiredOrRevoked(APIError):
    status_code = 401
    default_code = "SESSION_EXPIRED"
    default_message = "Sesión expirada o inválida"


class Forbidden(APIError):
    status_code = 403
    default_code = "FORBIDDEN"
    default_message = "No tienes permisos para realizar esta acción"


class NotFound(APIError):
    status_code = 404
    default_code = "NOT_FOUND"
    default_message = "Recurso no encontrado"


class Conflict(APIError):
    status_code = 409
    default_code = "DUPLICATE_ENTRY"
    default_message = "Ya existe un registro con estos datos"


class ReferencedRecordError(APIError):
    status_code = 409
    default_code = "REFERENCED_RECORD"
    default_message = "No se puede eliminar el registro porque está siendo utilizado"


class RateLimitExceeded(APIError):
    status_code = 429
    default_code = "RATE_LIMIT_EXCEEDED"
    default_message = "Demasiadas solicitudes, intente nuevamente más tarde"

    def __init__(self, *, retry_after_seconds: int, message: str | None = None) -> None:
        super().__init__(message=message)
        self.retry_after_seconds = retry_after_seconds


class DatabaseConnectionError(APIError):
    status_code = 503
    default_code = "DATABASE_CONNECTION_ERROR"
    default_message = "Error de conexión con la base de datos"


class InternalError(APIError):
    status_code = 500
    default_code = "INTERNAL_SERVER_ERROR"
    default_message = "Error interno del servidor"


def _request_id(request: Request) -> str:
    return str(getattr(request.state, "request_id", "unknown"))


def _is_development(request: Request) -> bool:
    config = getattr(request.app.state, "config", None)
    return bool(config is not None and config.is_development)


def _error_body(
    *, request: Request, error_code: str, message: str, details: Any | None = None
) -> dict[str, Any]:
    error: dict[str, Any] = {
        "message": message,
        "code": error_code,
        "timestamp": datetime.now(tz=UTC).isoformat(),
        "request_id": _request_id(request),
    }
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}


def api_error_response(request: Request, exc: APIError) -> JSONResponse:
    headers: dict[str, str] | None = None
    if isinstance(exc, RateLimitExceeded):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(
            request=request,
            error_code=exc.error_code,
            message=exc.message,
            details=exc.details,
        ),
        headers=headers,
    )


def _field_name(location: tuple[Any, ...] | list[Any]) -> str:
    parts = [str(part) for part in location if part not in {"body", "query", "path"}]
    return ".".join(parts) or "request"


def translate_integrity_error(exc: IntegrityError) -> APIError:
    """Map a storage constraint violation onto the API error taxonomy."""

    original = exc.orig
    args = getattr(original, "args", ())
    code = args[0] if args and isinstance(args[0], int) else None
    text = str(original).lower()

    if code == _MYSQL_DUPLICATE_ENTRY or "unique constraint" in text or "duplicate entry" in text:
        return Conflict()
    if code in _MYSQL_ROW_IS_REFERENCED or "cannot delete or update a parent row" in text:
        return ReferencedRecordError()
    if code in _MYSQL_NO_REFERENCED_ROW or "foreign key constraint" in text:
        return ValidationError.single("foreign_key", "Referencia inválida: el registro relacionado no existe")
    return ValidationError(message="Los datos no cumplen las restricciones de la base de datos")


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("API error %s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
        return api_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {"field": _field_name(error.get("loc", ())), "message": str(error.get("msg", ""))}
            for error in exc.errors()
        ]
        return api_error_response(request, ValidationError.for_fields(details))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            error = NotFound(
                error_code="ROUTE_NOT_FOUND",
                message=f"Ruta {request.method} {request.url.path} no encontrada",
            )
        else:
            error = APIError(status_code=exc.status_code, error_code="HTTP_ERROR", message=str(exc.detail))
        return api_error_response(request, error)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning("Integrity violation on %s %s: %s", request.method, request.url.path, exc.orig)
        return api_error_response(request, translate_integrity_error(exc))

    async def connection_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Database unavailable on %s %s", request.method, request.url.path, exc_info=exc)
        return api_error_response(request, DatabaseConnectionError())

    app.add_exception_handler(OperationalError, connection_error_handler)
    app.add_exception_handler(DisconnectionError, connection_error_handler)
    app.add_exception_handler(PoolTimeoutError, connection_error_handler)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        message = str(exc) if _is_development(request) and str(exc) else None
        return api_error_response(request, InternalError(message=message))
