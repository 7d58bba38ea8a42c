# This file wraps database access so API services can run parameterized SQL safely.
# It exists to keep SQL execution details out of router code and make testing easier.
# The helper owns the connection pool and hands out transaction scopes for multi-statement writes.
# A scope commits when its block exits cleanly and rolls back on any exception before re-raising.

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Naive UTC timestamp matching the DATETIME columns of the schema."""

    return datetime.now(tz=UTC).replace(tzinfo=None)


class TransactionScope:
    """Statement helpers bound to one connection inside an open transaction."""

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    @property
    def connection(self) -> Connection:
        return self._connection

    def fetch_all(self, query: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        rows = self._connection.execute(text(query), dict(params or {})).mappings().all()
        return [dict(row) for row in rows]

    def fetch_one(self, query: str, params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        row = self._connection.execute(text(query), dict(params or {})).mappings().first()
        return dict(row) if row is not None else None

    def fetch_scalar(self, query: str, params: Mapping[str, Any] | None = None) -> Any:
        return self._connection.execute(text(query), dict(params or {})).scalar()

    def execute(self, query: str, params: Mapping[str, Any] | None = None) -> int:
        result = self._connection.execute(text(query), dict(params or {}))
        return int(result.rowcount or 0)

    def insert(self, query: str, params: Mapping[str, Any] | None = None) -> int:
        result = self._connection.execute(text(query), dict(params or {}))
        return int(result.lastrowid)


class DatabaseClient:
    """Minimal SQLAlchemy wrapper for API read/write access."""

    def __init__(
        self,
        *,
        database_url: str | None = None,
        pool_size: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        engine: Engine | None = None,
    ) -> None:
        if engine is None:
            if not database_url:
                raise ValueError("database_url is required when no engine is supplied.")
            engine = self._build_engine(
                database_url,
                pool_size=pool_size,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
            )
        self._engine: Engine = engine

    @staticmethod
    def _build_engine(
        database_url: str,
        *,
        pool_size: int,
        pool_timeout: int,
        pool_recycle: int,
    ) -> Engine:
        if database_url.startswith("sqlite"):
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                future=True,
            )
        return create_engine(
            database_url,
            pool_pre_ping=True,
            pool_size=pool_size,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            future=True,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    def can_connect(self) -> bool:
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.warning("Database connectivity check failed", exc_info=True)
            return False

    def table_exists(self, table_name: str) -> bool:
        self._validate_identifier(table_name)
        return inspect(self._engine).has_table(table_name)

    def fetch_all(self, query: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        with self._engine.connect() as connection:
            rows = connection.execute(text(query), dict(params or {})).mappings().all()
        return [dict(row) for row in rows]

    def fetch_one(self, query: str, params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        with self._engine.connect() as connection:
            row = connection.execute(text(query), dict(params or {})).mappings().first()
        return dict(row) if row is not None else None

    def fetch_scalar(self, query: str, params: Mapping[str, Any] | None = None) -> Any:
        with self._engine.connect() as connection:
            return connection.execute(text(query), dict(params or {})).scalar()

    def execute(self, query: str, params: Mapping[str, Any] | None = None) -> int:
        with self._engine.begin() as connection:
            result = connection.execute(text(query), dict(params or {}))
        return int(result.rowcount or 0)

    def insert(self, query: str, params: Mapping[str, Any] | None = None) -> int:
        with self._engine.begin() as connection:
            result = connection.execute(text(query), dict(params or {}))
        return int(result.lastrowid)

    @contextmanager
    def transaction(self) -> Iterator[TransactionScope]:
        """Yield a scope whose statements commit together or not at all."""

        with self._engine.begin() as connection:
            yield TransactionScope(connection)

    def _validate_identifier(self, identifier: str) -> str:
        if not _IDENTIFIER_RE.match(identifier):
            raise ValueError(f"Unsafe SQL identifier: {identifier!r}")
        return identifier
