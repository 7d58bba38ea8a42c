"""
Relational schema for the shop database.
It declares every table with SQLAlchemy Core so the same definition provisions MySQL and test databases.
Uniqueness and foreign keys live here; services still pre-check for friendlier error messages.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Final

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
    insert,
    select,
)
from sqlalchemy.engine import Connection, Engine

metadata = MetaData()

NUMERO_PREFIX: Final[str] = "SERV-"
NUMERO_SEQUENCE: Final[str] = "servicios"
_NUMERO_RE = re.compile(r"^SERV-(\d+)$")

ROLE_VALUES: Final[tuple[str, ...]] = ("ADMIN", "EMPLEADO")


def _timestamps() -> list[Column]:
    return [
        Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
        Column("updated_at", DateTime, nullable=True),
    ]


usuarios = Table(
    "usuarios",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(100), nullable=False),
    Column("email", String(100), nullable=False, unique=True),
    Column("password", String(255), nullable=False),
    Column("rol", String(20), nullable=False, server_default="EMPLEADO"),
    Column("activo", Boolean, nullable=False, server_default="1"),
    Column("creado_en", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("actualizado_en", DateTime, nullable=True),
    Column("ultimo_login", DateTime, nullable=True),
)

sesiones = Table(
    "sesiones",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("usuario_id", Integer, ForeignKey("usuarios.id"), nullable=False, index=True),
    Column("token_hash", String(64), nullable=False, index=True),
    Column("ip_address", String(45), nullable=True),
    Column("user_agent", String(255), nullable=True),
    Column("expires_at", DateTime, nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
)

clientes = Table(
    "clientes",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(100), nullable=False),
    Column("apellido", String(100), nullable=False),
    Column("dni", String(8), nullable=True, index=True),
    Column("telefono", String(30), nullable=True),
    Column("direccion", String(255), nullable=True),
    Column("activo", Boolean, nullable=False, server_default="1"),
    *_timestamps(),
)

vehiculos = Table(
    "vehiculos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("cliente_id", Integer, ForeignKey("clientes.id"), nullable=False, index=True),
    Column("patente", String(10), nullable=False, index=True),
    Column("marca", String(50), nullable=False),
    Column("modelo", String(50), nullable=False),
    Column("anio", Integer, nullable=True),
    Column("kilometraje", Integer, nullable=False, server_default="0"),
    Column("observaciones", Text, nullable=True),
    Column("activo", Boolean, nullable=False, server_default="1"),
    *_timestamps(),
)

sucursales = Table(
    "sucursales",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(100), nullable=False),
    Column("ubicacion", String(255), nullable=True),
    Column("activo", Boolean, nullable=False, server_default="1"),
    *_timestamps(),
)

empleados = Table(
    "empleados",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(100), nullable=False),
    Column("apellido", String(100), nullable=False),
    Column("telefono", String(30), nullable=True),
    Column("cargo", String(100), nullable=True),
    Column("sucursal_id", Integer, ForeignKey("sucursales.id"), nullable=False, index=True),
    Column("activo", Boolean, nullable=False, server_default="1"),
    *_timestamps(),
)

tipos_servicios = Table(
    "tipos_servicios",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(100), nullable=False),
    Column("descripcion", String(500), nullable=True),
    Column("activo", Boolean, nullable=False, server_default="1"),
    *_timestamps(),
)

servicios = Table(
    "servicios",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("numero", String(20), nullable=False, unique=True),
    Column("cliente_id", Integer, ForeignKey("clientes.id"), nullable=False, index=True),
    Column("vehiculo_id", Integer, ForeignKey("vehiculos.id"), nullable=False, index=True),
    Column("sucursal_id", Integer, ForeignKey("sucursales.id"), nullable=False, index=True),
    Column("descripcion", Text, nullable=True),
    Column("observaciones", Text, nullable=True),
    Column("precio_referencia", Numeric(10, 2), nullable=False, server_default="0"),
    Column("activo", Boolean, nullable=False, server_default="1"),
    *_timestamps(),
)

servicio_empleados = Table(
    "servicio_empleados",
    metadata,
    Column("servicio_id", Integer, ForeignKey("servicios.id"), nullable=False),
    Column("empleado_id", Integer, ForeignKey("empleados.id"), nullable=False),
    PrimaryKeyConstraint("servicio_id", "empleado_id"),
)

servicio_items = Table(
    "servicio_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("servicio_id", Integer, ForeignKey("servicios.id"), nullable=False, index=True),
    Column("tipo_servicio_id", Integer, ForeignKey("tipos_servicios.id"), nullable=False),
    Column("descripcion", String(500), nullable=False),
    Column("observaciones", String(500), nullable=True),
    Column("notas", String(500), nullable=True),
)

productos = Table(
    "productos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("servicio_item_id", Integer, ForeignKey("servicio_items.id"), nullable=False, index=True),
    Column("nombre", String(200), nullable=False),
    Column("es_nuestro", Boolean, nullable=False, server_default="0"),
)

configuracion = Table(
    "configuracion",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("categoria", String(50), nullable=False),
    Column("clave", String(50), nullable=False),
    Column("valor", String(1000), nullable=False),
    Column("tipo", String(20), nullable=False, server_default="string"),
    Column("descripcion", String(200), nullable=True),
    *_timestamps(),
    UniqueConstraint("categoria", "clave", name="uq_configuracion_categoria_clave"),
)

secuencias = Table(
    "secuencias",
    metadata,
    Column("nombre", String(50), primary_key=True),
    Column("ultimo_valor", Integer, nullable=False),
)

TABLE_NAMES: Final[frozenset[str]] = frozenset(metadata.tables)


def format_numero(value: int) -> str:
    return f"{NUMERO_PREFIX}{value:05d}"


def parse_numero(numero: str | None) -> int | None:
    if not numero:
        return None
    match = _NUMERO_RE.match(numero)
    return int(match.group(1)) if match else None


def highest_numero(numeros: Iterable[str | None]) -> int:
    """Largest numeric `SERV-` suffix among the given numbers, ignoring malformed ones."""

    return max((parse_numero(numero) or 0 for numero in numeros), default=0)


def seed_numero_sequence(connection: Connection) -> None:
    exists = connection.execute(
        select(secuencias.c.nombre).where(secuencias.c.nombre == NUMERO_SEQUENCE)
    ).first()
    if exists is not None:
        return
    numeros = connection.execute(
        select(servicios.c.numero).where(servicios.c.numero.like(f"{NUMERO_PREFIX}%"))
    ).scalars().all()
    connection.execute(insert(secuencias).values(nombre=NUMERO_SEQUENCE, ultimo_valor=highest_numero(numeros)))


def create_schema(engine: Engine) -> None:
    """Create every missing table and make sure the service number counter row exists."""

    metadata.create_all(engine)
    with engine.begin() as connection:
        seed_numero_sequence(connection)
