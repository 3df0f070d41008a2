"""
Print the connection status of every tenant database.

Usage:
    python scripts/check_db.py
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.services.database_service import database_service


async def check_databases() -> bool:
    print("--- Checking tenant databases ---")
    connections = await database_service.health_check()
    for tenant, healthy in connections.items():
        print(f"{'✅' if healthy else '❌'} {tenant}: {'connected' if healthy else 'unavailable'}")
    database_service.close_all()
    return all(connections.values())


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(check_databases()) else 1)
