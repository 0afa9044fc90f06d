#!/usr/bin/env python3
"""
Create an administrator account directly in the database.

Usage:
  python scripts/create_admin.py --email admin@example.com --name "Store Admin" [--password ...]
"""
from __future__ import annotations

import argparse
import getpass
import sys

from storeapi.core.config import get_settings
from storeapi.db.create_tables import create_all
from storeapi.services.auth_service import AuthFailure, AuthService


class _SilentNotifier:
    def send_welcome(self, email: str, name: str) -> bool:
        return False

    def send_password_reset(self, email: str, reset_link: str) -> bool:
        return False


def main() -> None:
    ap = argparse.ArgumentParser(description="Create an admin user")
    ap.add_argument("--email", required=True, help="Admin email (login)")
    ap.add_argument("--name", default="Administrator", help="Display name")
    ap.add_argument("--password", help="Password (prompted when omitted)")
    ap.add_argument("--send-welcome", action="store_true", help="Send the welcome email")
    args = ap.parse_args()

    email = (args.email or "").strip()
    if not email or "@" not in email:
        raise SystemExit("Invalid email")
    password = args.password or getpass.getpass("Password: ")
    if len(password) < 8:
        raise SystemExit("Password too short, use at least 8 characters")

    settings = get_settings()
    create_all()
    service = AuthService(settings=settings) if args.send_welcome else AuthService(settings=settings, notifier=_SilentNotifier())
    result = service.register(email, password, args.name.strip() or "Administrator", role="admin")
    if isinstance(result, AuthFailure):
        raise SystemExit(f"Could not create admin: {result.message}")

    print("OK: admin created")
    print(f"  ID: {result.user.id}")
    print(f"  Email: {result.user.email}")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(130)
