"""
Create the users, letters and commissions tables in every tenant database.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --tenant user
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import TENANTS
from app.services.database_service import database_service


async def init_tenants(tenants) -> int:
    failures = 0
    for tenant in tenants:
        try:
            await database_service.init_schema(tenant)
            print(f"✓ Schema applied to {tenant}")
        except Exception as e:
            failures += 1
            print(f"✗ Failed to apply schema to {tenant}: {e}")
    database_service.close_all()
    return failures


def main():
    parser = argparse.ArgumentParser(description="Initialize tenant database schemas")
    parser.add_argument(
        "--tenant",
        choices=TENANTS,
        action="append",
        help="Tenant to initialize (repeatable, default: all)",
    )
    args = parser.parse_args()

    failures = asyncio.run(init_tenants(args.tenant or TENANTS))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
