"""
Service tests for the catalog records: clients, vehicles, branches, service types, settings, and users.
Deletes are soft except for settings, and a referenced record cannot be removed.
"""

from __future__ import annotations

import pytest

from src.api.api_config import ApiConfig
from src.api.authorization import Role
from src.api.db_access import DatabaseClient, utc_now
from src.api.error_handlers import Conflict, NotFound, ReferencedRecordError, ValidationError
from src.api.pagination import PaginationSpec
from src.api.schemas.configuracion_schemas import ConfiguracionEntry
from src.api.security import PasswordHasher
from src.api.services.cliente_service import ClienteService
from src.api.services.configuracion_service import ConfiguracionService
from src.api.services.sucursal_service import SucursalService
from src.api.services.tipo_servicio_service import TipoServicioService
from src.api.services.user_service import UserService
from src.api.services.vehiculo_service import VehiculoService
from tests.integration.support import insert_row

pytestmark = pytest.mark.integration

PAGE = PaginationSpec(page=1, page_size=10)


def _cliente_fields(**overrides: str | None) -> dict[str, str | None]:
    values: dict[str, str | None] = {
        "nombre": "Ana",
        "apellido": "Gómez",
        "dni": "28111222",
        "telefono": None,
        "direccion": None,
    }
    values.update(overrides)
    return values


def test_cliente_full_name_search_and_embedded_vehicles(
    config: ApiConfig, db: DatabaseClient, shop: dict[str, int]
) -> None:
    clientes = ClienteService(config=config, db=db)
    clientes.create_cliente(**_cliente_fields())

    by_full_name = clientes.list_clientes(search="Juan Pérez", search_by="all", pagination=PAGE)
    by_dni = clientes.list_clientes(search="2811", search_by="dni", pagination=PAGE)
    everyone = clientes.list_clientes(search=None, search_by="all", pagination=PAGE)

    assert [row["id"] for row in by_full_name["rows"]] == [shop["cliente_id"]]
    assert by_full_name["rows"][0]["vehiculos"][0]["patente"] == "AB123CD"
    assert by_dni["rows"][0]["nombre"] == "Ana"
    assert everyone["total_count"] == 2


def test_cliente_search_treats_wildcards_literally(config: ApiConfig, db: DatabaseClient, shop: dict[str, int]) -> None:
    clientes = ClienteService(config=config, db=db)

    result = clientes.list_clientes(search="%", search_by="all", pagination=PAGE)

    assert result == {"rows": [], "total_count": 0}


def test_cliente_duplicate_dni_is_conflict(config: ApiConfig, db: DatabaseClient, shop: dict[str, int]) -> None:
    clientes = ClienteService(config=config, db=db)

    with pytest.raises(Conflict) as excinfo:
        clientes.create_cliente(**_cliente_fields(dni="30123456"))
    assert excinfo.value.error_code == "DUPLICATE_DNI"

    unchanged = clientes.update_cliente(shop["cliente_id"], **_cliente_fields(nombre="Juan", dni="30123456"))
    assert unchanged["dni"] == "30123456"


def test_cliente_with_active_vehicle_cannot_be_deleted(
    config: ApiConfig, db: DatabaseClient, shop: dict[str, int]
) -> None:
    clientes = ClienteService(config=config, db=db)
    vehiculos = VehiculoService(config=config, db=db)

    with pytest.raises(ReferencedRecordError) as excinfo:
        clientes.delete_cliente(shop["cliente_id"])
    assert excinfo.value.error_code == "VEHICLES_ASSOCIATED"

    vehiculos.delete_vehiculo(shop["vehiculo_id"])
    clientes.delete_cliente(shop["cliente_id"])

    with pytest.raises(NotFound) as missing:
        clientes.get_cliente(shop["cliente_id"])
    assert missing.value.error_code == "CLIENT_NOT_FOUND"
    assert db.fetch_scalar("SELECT COUNT(*) FROM clientes WHERE id = :id", {"id": shop["cliente_id"]}) == 1


def test_vehiculo_patente_is_unique_among_active_rows(
    config: ApiConfig, db: DatabaseClient, shop: dict[str, int]
) -> None:
    vehiculos = VehiculoService(config=config, db=db)
    values = {"cliente_id": shop["cliente_id"], "patente": "ab123cd", "marca": "Fiat", "modelo": "Uno"}

    with pytest.raises(Conflict) as excinfo:
        vehiculos.create_vehiculo(values)
    assert excinfo.value.error_code == "DUPLICATE_PATENTE"

    vehiculos.delete_vehiculo(shop["vehiculo_id"])
    created = vehiculos.create_vehiculo(values)
    assert created["patente"] == "AB123CD"
    assert created["cliente_nombre"] == "Juan Pérez"


def test_vehiculo_requires_active_owner(config: ApiConfig, db: DatabaseClient, shop: dict[str, int]) -> None:
    vehiculos = VehiculoService(config=config, db=db)

    with pytest.raises(ValidationError) as excinfo:
        vehiculos.create_vehiculo({"cliente_id": 999, "patente": "XY999ZZ", "marca": "Fiat", "modelo": "Uno"})
    assert excinfo.value.details[0]["field"] == "cliente_id"


def test_kilometraje_never_decreases(config: ApiConfig, db: DatabaseClient, shop: dict[str, int]) -> None:
    vehiculos = VehiculoService(config=config, db=db)

    with pytest.raises(ValidationError):
        vehiculos.update_kilometraje(shop["vehiculo_id"], 999)

    assert vehiculos.update_kilometraje(shop["vehiculo_id"], 1000)["kilometraje"] == 1000
    assert vehiculos.update_kilometraje(shop["vehiculo_id"], 5400)["kilometraje"] == 5400


def test_sucursal_delete_is_blocked_by_services_then_employees(
    config: ApiConfig, db: DatabaseClient, shop: dict[str, int]
) -> None:
    sucursales = SucursalService(config=config, db=db)
    servicio_id = insert_row(
        db,
        "servicios",
        {
            "numero": "SERV-00001",
            "cliente_id": shop["cliente_id"],
            "vehiculo_id": shop["vehiculo_id"],
            "sucursal_id": shop["sucursal_id"],
            "precio_referencia": 0,
            "activo": True,
            "created_at": utc_now(),
        },
    )

    with pytest.raises(ReferencedRecordError) as by_services:
        sucursales.delete_sucursal(shop["sucursal_id"])
    assert by_services.value.error_code == "SERVICES_ASSOCIATED"

    db.execute("DELETE FROM servicios WHERE id = :id", {"id": servicio_id})
    with pytest.raises(ReferencedRecordError) as by_employees:
        sucursales.delete_sucursal(shop["sucursal_id"])
    assert by_employees.value.error_code == "EMPLOYEES_ASSOCIATED"


def test_sucursal_listing_filters_on_activo(config: ApiConfig, db: DatabaseClient, shop: dict[str, int]) -> None:
    sucursales = SucursalService(config=config, db=db)
    closed = sucursales.create_sucursal(nombre="Norte", ubicacion=None)
    sucursales.update_sucursal(closed["id"], nombre="Norte", ubicacion=None, activo=False)

    active = sucursales.list_sucursales(search=None, activo=True, pagination=PAGE)
    inactive = sucursales.list_sucursales(search=None, activo=False, pagination=PAGE)

    assert [row["nombre"] for row in active["rows"]] == ["Centro"]
    assert [row["nombre"] for row in inactive["rows"]] == ["Norte"]
    assert [row["nombre"] for row in sucursales.list_activas()] == ["Centro"]


def test_tipo_servicio_duplicate_name_and_quick_search(
    config: ApiConfig, db: DatabaseClient, shop: dict[str, int]
) -> None:
    tipos = TipoServicioService(config=config, db=db)

    with pytest.raises(Conflict) as excinfo:
        tipos.create_tipo(nombre="Cambio de aceite", descripcion=None)
    assert excinfo.value.error_code == "DUPLICATE_SERVICE_TYPE"

    found = tipos.search_tipos("filtro")
    assert [row["nombre"] for row in found] == ["Cambio de filtros"]
    assert len(tipos.search_tipos(None)) == 2


def test_configuracion_create_bulk_upsert_and_delete(config: ApiConfig, db: DatabaseClient) -> None:
    settings = ConfiguracionService(config=config, db=db)
    created = settings.create(ConfiguracionEntry(categoria="empresa", clave="nombre", valor="Milo"))

    with pytest.raises(Conflict) as duplicate:
        settings.create(ConfiguracionEntry(categoria="empresa", clave="nombre", valor="Otro"))
    assert duplicate.value.error_code == "DUPLICATE_CONFIG"

    rows = settings.bulk_upsert(
        [
            ConfiguracionEntry(categoria="empresa", clave="nombre", valor="Milo Lubricantes"),
            ConfiguracionEntry(categoria="servicios", clave="iva", valor="21", tipo="number"),
        ]
    )
    by_key = {(row["categoria"], row["clave"]): row for row in rows}
    assert by_key[("empresa", "nombre")]["valor"] == "Milo Lubricantes"
    assert by_key[("empresa", "nombre")]["id"] == created["id"]
    assert by_key[("servicios", "iva")]["tipo"] == "number"
    assert [row["clave"] for row in settings.list_by_categoria("servicios")] == ["iva"]

    settings.delete(created["id"])
    with pytest.raises(NotFound) as missing:
        settings.delete(created["id"])
    assert missing.value.error_code == "CONFIG_NOT_FOUND"


def test_user_deactivation_drops_sessions_and_blocks_self_delete(
    config: ApiConfig, db: DatabaseClient, hasher: PasswordHasher
) -> None:
    users = UserService(config=config, db=db, hasher=hasher)
    admin = users.create_user(nombre="Admin", email="admin@milo.com", password="secret123", rol=Role.ADMIN)
    empleado = users.create_user(nombre="Emp", email="emp@milo.com", password="secret123", rol=Role.EMPLOYEE)
    insert_row(
        db,
        "sesiones",
        {"usuario_id": empleado["id"], "token_hash": "a" * 64, "expires_at": utc_now(), "created_at": utc_now()},
    )

    with pytest.raises(ValidationError) as excinfo:
        users.delete_user(admin["id"], acting_user_id=admin["id"])
    assert excinfo.value.error_code == "SELF_DELETE"

    users.delete_user(empleado["id"], acting_user_id=admin["id"])

    assert users.get_user(empleado["id"])["activo"] is False
    assert db.fetch_scalar("SELECT COUNT(*) FROM sesiones WHERE usuario_id = :id", {"id": empleado["id"]}) == 0
    assert users.list_users(search=None, rol=Role.EMPLOYEE, pagination=PAGE)["total_count"] == 1


def test_user_email_stays_unique_even_after_deactivation(
    config: ApiConfig, db: DatabaseClient, hasher: PasswordHasher
) -> None:
    users = UserService(config=config, db=db, hasher=hasher)
    admin = users.create_user(nombre="Admin", email="admin@milo.com", password="secret123", rol=Role.ADMIN)
    empleado = users.create_user(nombre="Emp", email="emp@milo.com", password="secret123", rol=Role.EMPLOYEE)
    users.delete_user(empleado["id"], acting_user_id=admin["id"])

    with pytest.raises(Conflict) as excinfo:
        users.create_user(nombre="Emp 2", email="emp@milo.com", password="secret123", rol=Role.EMPLOYEE)
    assert excinfo.value.error_code == "EMAIL_ALREADY_EXISTS"
