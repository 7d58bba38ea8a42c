"""
Row-seeding helper shared by the SQLite-backed service tests.
"""

from __future__ import annotations

from typing import Any

from src.api.db_access import DatabaseClient


def insert_row(db: DatabaseClient, table: str, values: dict[str, Any]) -> int:
    columns = ", ".join(values)
    placeholders = ", ".join(f":{column}" for column in values)
    return db.insert(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", values)
