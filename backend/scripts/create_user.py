#!/usr/bin/env python3
"""Create a staff account.

Usage:
    python scripts/create_user.py --email asha@designstudio.com --name "Asha" --role editor
    python scripts/create_user.py --email admin@designstudio.com --name Admin --role admin --password s3cret
"""

import argparse
import getpass
import sys
from pathlib import Path

# backend/ on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sqlalchemy import select

from app.auth.models import User, UserRole
from app.auth.utils import hash_password
from app.shared.db import SessionLocal


def create_user(email: str, name: str, role: UserRole, password: str) -> bool:
    with SessionLocal() as db:
        existing = db.scalar(select(User).where(User.email == email))
        if existing:
            print(f"❌ User '{email}' already exists (id={existing.id}, role={existing.role.value})")
            return False
        user = User(email=email, name=name, role=role, password_hash=hash_password(password))
        db.add(user)
        db.commit()
        print(f"✅ Created {role.value} '{name}' <{email}> (id={user.id})")
        return True


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a QuoteDesk staff account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    parser.add_argument("--role", choices=[r.value for r in UserRole], default=UserRole.editor.value)
    parser.add_argument("--password", help="prompted for when omitted")
    args = parser.parse_args()

    password = args.password or getpass.getpass("Password: ")
    if not password:
        print("❌ Password cannot be empty")
        return 1
    return 0 if create_user(args.email, args.name, UserRole(args.role), password) else 1


if __name__ == "__main__":
    sys.exit(main())
