#!/usr/bin/env python3
"""
Register a user directly in the backend database.

Usage:
  python scripts/create_user.py --first Ada --last Lovelace --role developer [--password secret] [--id <uuid>]
"""
from __future__ import annotations

import argparse
import secrets
import sys

from tracker.core.errors import ValidationError
from tracker.core.security import hash_password
from tracker.core.utils import new_id
from tracker.domain.models import Role, User
from tracker.repositories.sql_repository import SQLRepository


def gen_password(length: int = 12) -> str:
    return secrets.token_urlsafe(length)[:length]


def main() -> None:
    ap = argparse.ArgumentParser(description="Create a tracker user in the backend database")
    ap.add_argument("--first", required=True, help="First name")
    ap.add_argument("--last", required=True, help="Last name")
    ap.add_argument("--role", default=Role.DEVELOPER.value, help="guest | developer | devops | admin")
    ap.add_argument("--password", help="Password (default: random)")
    ap.add_argument("--id", help="User id (default: random UUID)")
    args = ap.parse_args()

    first = (args.first or "").strip()
    last = (args.last or "").strip()
    if not first or not last:
        raise SystemExit("First and last name are required")
    try:
        role = Role.parse(args.role.strip().lower())
    except ValidationError as exc:
        raise SystemExit(exc.message)

    repo = SQLRepository()
    existing, _ = repo.get_user_credentials(first, last)
    if existing:
        raise SystemExit(f"User '{first} {last}' already exists ({existing.id})")

    password = (args.password or "").strip() or gen_password()
    user = User(id=(args.id or "").strip() or new_id(), first_name=first, last_name=last, role=role)
    if not repo.create_user(user, hash_password(password)):
        raise SystemExit(f"Could not create user '{user.full_name}'")
    print("OK: user created")
    print(f"  Id: {user.id}")
    print(f"  Name: {user.full_name}")
    print(f"  Role: {user.role.value}")
    if not args.password:
        print(f"  Password: {password}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
