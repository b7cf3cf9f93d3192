#!/usr/bin/env python3
"""
Script to create the admin account (or promote an existing user)

Usage: python scripts/create_admin.py [email] [password] [name]
Missing arguments fall back to ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME.
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from bridge.core.config import settings
from bridge.core.database import SessionLocal, init_db
from bridge.core.errors import AppError
from bridge.services.identity import ensure_admin_user


def main(argv):
    email = argv[1] if len(argv) > 1 else settings.ADMIN_EMAIL
    password = argv[2] if len(argv) > 2 else settings.ADMIN_PASSWORD
    name = argv[3] if len(argv) > 3 else settings.ADMIN_NAME

    if not email:
        print("❌ No admin email given (argument or ADMIN_EMAIL)")
        return 1

    init_db()
    db = SessionLocal()
    try:
        user = ensure_admin_user(db, email, password, name)
    except AppError as e:
        print(f"❌ {e.message}")
        return 1
    finally:
        db.close()

    print(f"✅ Admin ready: {user.email} (id={user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
