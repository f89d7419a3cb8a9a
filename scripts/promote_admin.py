#!/usr/bin/env python3
"""
Grant (or revoke) the admin role for an existing account.

Usage:
  python scripts/promote_admin.py --email someone@example.com [--demote]
"""
from __future__ import annotations

import argparse
import sys

from auth_api.core.config import get_settings
from auth_api.db.models import ROLE_ADMIN, ROLE_USER
from auth_api.db.session import Database
from auth_api.repositories.user_repository import UserRepository


def main() -> None:
    ap = argparse.ArgumentParser(description="Promote or demote an account")
    ap.add_argument("--email", required=True, help="Email of the account")
    ap.add_argument("--demote", action="store_true", help="Revoke admin instead of granting it")
    args = ap.parse_args()

    email = (args.email or "").strip()
    if not email:
        raise SystemExit("Invalid email")
    role = ROLE_USER if args.demote else ROLE_ADMIN

    database = Database(get_settings().database_url)
    try:
        user = UserRepository(database).set_role(email, role)
    finally:
        database.dispose()
    if not user:
        raise SystemExit(f"No account for '{email}'")

    print("OK: role updated")
    print(f"  User: {user.id} <{user.email}>")
    print(f"  Role: {user.role}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
