#!/usr/bin/env python3
"""
Print bcrypt hashes for the default seed accounts.
It packages a repeatable workflow so seed SQL can be written without running the API.
Run it directly and copy the printed hashes into the `usuarios` seed rows.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.api.security import PasswordHasher

DEFAULT_ACCOUNTS: tuple[tuple[str, str], ...] = (
    ("admin", "admin123"),
    ("empleado", "empleado123"),
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate bcrypt hashes for seed passwords")
    parser.add_argument("--rounds", type=int, default=12)
    parser.add_argument(
        "passwords",
        nargs="*",
        help="Passwords to hash; the default seed accounts are used when none are given",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    hasher = PasswordHasher(rounds=args.rounds)
    accounts = [(password, password) for password in args.passwords] or list(DEFAULT_ACCOUNTS)

    print("Generando hashes de contraseñas...\n")
    for label, password in accounts:
        print(f"{label}: {password} -> {hasher.hash(password)}")


if __name__ == "__main__":
    main()
