#!/usr/bin/env python3
"""
Create the Milo Lubricantes schema, seed the service number counter, and optionally the first administrator.
It packages a repeatable workflow so a fresh database can be prepared consistently.
Run it directly or via `make`, and expect it to print progress and exit non-zero on failure.
"""

from __future__ import annotations

import argparse
import getpass
import json
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.api.api_config import load_api_config
from src.api.authorization import Role
from src.api.db_access import DatabaseClient
from src.api.error_handlers import Conflict
from src.api.security import PasswordHasher
from src.api.services.user_service import UserService
from src.common.tables import NUMERO_SEQUENCE, TABLE_NAMES, create_schema


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create tables and seed an administrator account")
    parser.add_argument("--admin-email", default=None, help="Create an ADMIN user with this email")
    parser.add_argument("--admin-name", default="Administrador")
    parser.add_argument("--admin-password", default=None, help="Prompted for when omitted")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    config = load_api_config()
    db = DatabaseClient(database_url=config.database_url)

    if not db.can_connect():
        print("Database is unreachable; check DATABASE_URL.", file=sys.stderr)
        sys.exit(1)

    create_schema(db.engine)
    summary: dict[str, object] = {
        "tables": sorted(name for name in TABLE_NAMES if db.table_exists(name)),
        "ultimo_numero": db.fetch_scalar(
            "SELECT ultimo_valor FROM secuencias WHERE nombre = :nombre", {"nombre": NUMERO_SEQUENCE}
        ),
    }

    if args.admin_email:
        password = args.admin_password or getpass.getpass("Admin password: ")
        if len(password) < 6:
            print("Admin password must be at least 6 characters.", file=sys.stderr)
            sys.exit(1)
        users = UserService(config=config, db=db, hasher=PasswordHasher(rounds=config.bcrypt_rounds))
        try:
            admin = users.create_user(nombre=args.admin_name, email=args.admin_email, password=password, rol=Role.ADMIN)
        except Conflict:
            print(f"User {args.admin_email} already exists; left unchanged.", file=sys.stderr)
        else:
            summary["admin_id"] = admin["id"]

    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
