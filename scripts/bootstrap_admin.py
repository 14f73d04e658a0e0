#!/usr/bin/env python3
"""
Create the first admin account (only when the users table is empty).

Defaults come from config auth.admin_email / auth.admin_default_password
(or ADMIN_EMAIL / ADMIN_PASSWORD).

Usage:
    python scripts/bootstrap_admin.py
    python scripts/bootstrap_admin.py --email admin@empresa.com --password s3cret!
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from config.settings import settings
from nexus_admin.auth.service import AuthService
from nexus_admin.db import get_engine, init_db
from nexus_admin.errors import ConflictError
from nexus_admin.users import SqlUserRepository


def main():
    parser = argparse.ArgumentParser(description="Bootstrap first admin user")
    parser.add_argument("--email", default=None, help="Admin email (default: from config)")
    parser.add_argument("--password", default=None, help="Admin password (default: from config)")
    parser.add_argument("--name", default=None, help="Display name (default: from config)")
    args = parser.parse_args()

    engine = get_engine()
    init_db(engine)
    users = SqlUserRepository(engine)

    existing = users.count()
    if existing:
        print(f"Users already exist ({existing}). Log in as an admin and use POST /api/users.")
        return

    email = args.email or settings.auth.admin_email
    password = args.password or settings.auth.admin_default_password
    name = args.name or settings.auth.admin_name
    if not email or not password:
        print("Error: email and password required (set in config or --email/--password)")
        sys.exit(1)
    if len(password) < 6:
        print("Error: password must have at least 6 characters")
        sys.exit(1)

    auth = AuthService(users, bcrypt_rounds=settings.auth.bcrypt_rounds)
    try:
        user = auth.create_user({"email": email, "password": password, "name": name, "role": "admin"})
    except ConflictError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    print(f"Created admin user: {user.email} (id={user.id})")
    print('Login: POST /api/auth/login with body {"email": "%s", "password": "..."}' % user.email)
    if password == "admin123":
        print("WARNING: default password in use; change it after the first login.")


if __name__ == "__main__":
    main()
