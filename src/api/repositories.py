# This file provides the shared access pattern for soft-deletable catalog tables.
# It exists so the active-row predicate, uniqueness pre-checks, and soft deletes are written once.
# Table and column names are validated against the declared schema before entering any SQL text.
# Uniqueness pre-checks are advisory; storage constraints remain the final authority.

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from src.api.db_access import DatabaseClient, TransactionScope, utc_now
from src.api.error_handlers import Conflict, NotFound
from src.common.tables import metadata

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

logger = logging.getLogger(__name__)

Executor = DatabaseClient | TransactionScope


class ActiveRecordRepository:
    """Queries over one table whose rows carry an `activo` flag."""

    def __init__(
        self,
        *,
        db: DatabaseClient,
        table_name: str,
        not_found_code: str,
        not_found_message: str,
        updated_column: str | None = "updated_at",
    ) -> None:
        if table_name not in metadata.tables:
            raise ValueError(f"Table name is not in the schema: {table_name!r}")
        self.db = db
        self.table = self._validate_identifier(table_name)
        self.not_found_code = not_found_code
        self.not_found_message = not_found_message
        self.updated_column = updated_column
        self._columns = {column.name for column in metadata.tables[table_name].columns}

    def find_active(self, record_id: int, *, executor: Executor | None = None) -> dict[str, Any] | None:
        runner = executor or self.db
        return runner.fetch_one(
            f"SELECT * FROM {self.table} WHERE id = :id AND activo = :activo",
            {"id": record_id, "activo": True},
        )

    def get_active(self, record_id: int, *, executor: Executor | None = None) -> dict[str, Any]:
        row = self.find_active(record_id, executor=executor)
        if row is None:
            raise NotFound(error_code=self.not_found_code, message=self.not_found_message)
        return row

    def exists_active(self, record_id: int, *, executor: Executor | None = None) -> bool:
        runner = executor or self.db
        found = runner.fetch_scalar(
            f"SELECT COUNT(*) FROM {self.table} WHERE id = :id AND activo = :activo",
            {"id": record_id, "activo": True},
        )
        return int(found or 0) > 0

    def ensure_unique(
        self,
        column: str,
        value: Any,
        *,
        exclude_id: int | None = None,
        error_code: str,
        message: str,
        active_only: bool = True,
    ) -> None:
        """Raise Conflict when another row already holds `value` in `column`."""

        if value is None:
            return
        safe_column = self._validate_column(column)
        clauses = [f"{safe_column} = :value"]
        params: dict[str, Any] = {"value": value}
        if active_only:
            clauses.append("activo = :activo")
            params["activo"] = True
        if exclude_id is not None:
            clauses.append("id <> :exclude_id")
            params["exclude_id"] = exclude_id

        where_sql = " AND ".join(clauses)
        duplicates = self.db.fetch_scalar(f"SELECT COUNT(*) FROM {self.table} WHERE {where_sql}", params)
        if int(duplicates or 0) > 0:
            raise Conflict(error_code=error_code, message=message)

    def count_active_where(self, column: str, value: Any) -> int:
        safe_column = self._validate_column(column)
        total = self.db.fetch_scalar(
            f"SELECT COUNT(*) FROM {self.table} WHERE {safe_column} = :value AND activo = :activo",
            {"value": value, "activo": True},
        )
        return int(total or 0)

    def soft_delete(self, record_id: int) -> None:
        assignments = "activo = :inactive"
        params: dict[str, Any] = {"id": record_id, "inactive": False, "active": True}
        if self.updated_column:
            assignments += f", {self._validate_column(self.updated_column)} = :updated_at"
            params["updated_at"] = utc_now()

        affected = self.db.execute(
            f"UPDATE {self.table} SET {assignments} WHERE id = :id AND activo = :active",
            params,
        )
        if affected == 0:
            raise NotFound(error_code=self.not_found_code, message=self.not_found_message)
        logger.info("Soft deleted %s id=%s", self.table, record_id)

    def insert(self, values: Mapping[str, Any], *, executor: Executor | None = None) -> int:
        columns = [self._validate_column(column) for column in values]
        placeholders = ", ".join(f":{column}" for column in columns)
        query = f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders})"
        return (executor or self.db).insert(query, dict(values))

    def update(self, record_id: int, values: Mapping[str, Any], *, executor: Executor | None = None) -> int:
        assignments = dict(values)
        if self.updated_column:
            assignments[self.updated_column] = utc_now()
        set_sql = ", ".join(f"{self._validate_column(column)} = :{column}" for column in assignments)
        params = {**assignments, "id": record_id}
        return (executor or self.db).execute(f"UPDATE {self.table} SET {set_sql} WHERE id = :id", params)

    def _validate_column(self, column: str) -> str:
        safe = self._validate_identifier(column)
        if safe not in self._columns:
            raise ValueError(f"Unknown column for {self.table}: {column!r}")
        return safe

    @staticmethod
    def _validate_identifier(identifier: str) -> str:
        if not _IDENTIFIER_RE.match(identifier):
            raise ValueError(f"Unsafe SQL identifier: {identifier!r}")
        return identifier
