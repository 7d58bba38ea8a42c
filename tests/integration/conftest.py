"""
Fixtures for service tests that run real SQL against a throwaway SQLite file.
The schema comes from `src.common.tables`, so these tests exercise the same statements MySQL receives.
"""

from __future__ import annotations

from pathlib import Path
import pytest

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient, utc_now
from src.api.security import PasswordHasher
from src.common.tables import create_schema
from tests.api.support import build_test_config
from tests.integration.support import insert_row


@pytest.fixture
def config() -> ApiConfig:
    return build_test_config()


@pytest.fixture
def db(tmp_path: Path) -> DatabaseClient:
    client = DatabaseClient(database_url=f"sqlite+pysqlite:///{tmp_path / 'milo.db'}")
    create_schema(client.engine)
    return client


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def shop(db: DatabaseClient) -> dict[str, int]:
    """Seed one active client, vehicle, branch, employee pair, and two service types."""

    now = utc_now()
    stamps = {"created_at": now, "updated_at": now}
    sucursal_id = insert_row(db, "sucursales", {"nombre": "Centro", "ubicacion": "Junín 100", "activo": True, **stamps})
    cliente_id = insert_row(
        db,
        "clientes",
        {"nombre": "Juan", "apellido": "Pérez", "dni": "30123456", "activo": True, **stamps},
    )
    vehiculo_id = insert_row(
        db,
        "vehiculos",
        {
            "cliente_id": cliente_id,
            "patente": "AB123CD",
            "marca": "Ford",
            "modelo": "Ka",
            "anio": 2015,
            "kilometraje": 1000,
            "activo": True,
            **stamps,
        },
    )
    empleado_a = insert_row(
        db,
        "empleados",
        {"nombre": "Luis", "apellido": "Sosa", "sucursal_id": sucursal_id, "activo": True, **stamps},
    )
    empleado_b = insert_row(
        db,
        "empleados",
        {"nombre": "Marta", "apellido": "Ríos", "sucursal_id": sucursal_id, "activo": True, **stamps},
    )
    tipo_aceite = insert_row(db, "tipos_servicios", {"nombre": "Cambio de aceite", "activo": True, **stamps})
    tipo_filtro = insert_row(db, "tipos_servicios", {"nombre": "Cambio de filtros", "activo": True, **stamps})
    return {
        "sucursal_id": sucursal_id,
        "cliente_id": cliente_id,
        "vehiculo_id": vehiculo_id,
        "empleado_a": empleado_a,
        "empleado_b": empleado_b,
        "tipo_aceite": tipo_aceite,
        "tipo_filtro": tipo_filtro,
    }
