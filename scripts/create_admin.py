"""
Create an admin account.

Usage:
    python scripts/create_admin.py --email admin@example.com --name "Site Admin" --password 'Secret123!'
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.models.user import UserRole
from app.schemas.auth import validate_password_strength
from app.services.database_service import database_service
from app.services.user_repository import user_repository


async def create_admin(email: str, name: str, password: str) -> bool:
    role = UserRole.ADMIN.value
    try:
        if await user_repository.find_by_email(email, role):
            print(f"❌ An admin with email {email} already exists")
            return False

        user = await user_repository.create_user(email, name, password, role)
        print(f"✅ Admin created: {user.email} ({user.id})")
        return True
    finally:
        database_service.close_all()


def main():
    parser = argparse.ArgumentParser(description="Create a Talk-to-My-Lawyer admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args()

    try:
        validate_password_strength(args.password)
    except ValueError as e:
        print(f"❌ {e}")
        sys.exit(1)

    sys.exit(0 if asyncio.run(create_admin(args.email.lower(), args.name, args.password)) else 1)


if __name__ == "__main__":
    main()
