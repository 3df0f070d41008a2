"""
Multi-tenant Postgres access.

Each tenant (admin, user, remote_employee) has its own connection pool and a
tenant id that is set on every connection before a query runs. psycopg2 is a
blocking driver, so all pool work runs in a worker thread.
"""

import asyncio
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import PoolError, ThreadedConnectionPool

from app.config import settings, TENANTS, TenantConfig
from app.exceptions import DatabaseUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL,
    email_verified BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    last_login TIMESTAMPTZ,
    login_attempts INTEGER NOT NULL DEFAULT 0,
    locked_until TIMESTAMPTZ,
    password_reset_token TEXT,
    password_reset_expires TIMESTAMPTZ,
    discount_code TEXT UNIQUE,
    referral_points INTEGER,
    referred_by UUID,
    subscription_plan TEXT,
    letters_used INTEGER
);

CREATE TABLE IF NOT EXISTS letters (
    id UUID PRIMARY KEY,
    user_id UUID NOT NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    category TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'generated',
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS commissions (
    id UUID PRIMARY KEY,
    remote_employee_id UUID NOT NULL,
    user_id UUID NOT NULL,
    user_email TEXT NOT NULL,
    plan_id TEXT NOT NULL,
    subscription_amount NUMERIC(10, 2) NOT NULL,
    commission_amount NUMERIC(10, 2) NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


class DatabaseService:
    """Routes queries to the pool of the requested tenant"""

    def __init__(self, configs: Optional[Dict[str, TenantConfig]] = None):
        self.configs = configs if configs is not None else settings.tenant_configs
        self._pools: Dict[str, ThreadedConnectionPool] = {}
        self._pools_lock = threading.Lock()
        # ThreadedConnectionPool raises instead of waiting when every
        # connection is out, so callers queue here first
        self._slots: Dict[str, asyncio.Semaphore] = {}

    def get_pool(self, tenant: str) -> ThreadedConnectionPool:
        """Return the pool for a tenant, creating it on first use"""
        if tenant not in self.configs:
            raise ValueError(f"Database pool not found for user type: {tenant}")

        pool = self._pools.get(tenant)
        if pool is not None:
            return pool

        with self._pools_lock:
            pool = self._pools.get(tenant)
            if pool is None:
                config = self.configs[tenant]
                pool = ThreadedConnectionPool(
                    minconn=1,
                    maxconn=settings.DB_POOL_MAX,
                    host=config.host,
                    port=config.port,
                    dbname=config.database,
                    user=config.user,
                    password=config.password,
                    sslmode=settings.DB_SSLMODE,
                    connect_timeout=settings.DB_CONNECT_TIMEOUT,
                )
                self._pools[tenant] = pool
        return pool

    def _slot(self, tenant: str) -> asyncio.Semaphore:
        slot = self._slots.get(tenant)
        if slot is None:
            slot = self._slots[tenant] = asyncio.Semaphore(settings.DB_POOL_MAX)
        return slot

    def _run(self, tenant: str, work: Callable[[Any], T]) -> T:
        """Run work(cursor) in one transaction on a tenant connection"""
        pool = self.get_pool(tenant)
        conn = pool.getconn()
        broken = False
        try:
            with conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute("SET nile.tenant_id = %s",
                                (self.configs[tenant].tenant_id,))
                    return work(cur)
        except psycopg2.InterfaceError:
            broken = True
            raise
        finally:
            pool.putconn(conn, close=broken)

    @staticmethod
    def _statement(sql: str, params: Optional[Sequence[Any]], fetch: str):
        def work(cur):
            cur.execute(sql, params)
            if fetch == "one":
                row = cur.fetchone()
                return dict(row) if row else None
            if fetch == "all":
                return [dict(row) for row in cur.fetchall()]
            return cur.rowcount
        return work

    def _ping(self, tenant: str) -> bool:
        self._run(tenant, self._statement("SELECT 1", None, "one"))
        return True

    async def test_connection(self, tenant: str) -> bool:
        """Check that the tenant database answers a trivial query"""
        try:
            async with self._slot(tenant):
                return await asyncio.to_thread(self._ping, tenant)
        except Exception as e:
            logger.error(f"Database connection test failed for {tenant}: {e}")
            return False

    async def wait_for_connection(
        self, tenant: str, max_retries: int = 5, retry_interval: float = 2.0
    ) -> bool:
        for attempt in range(1, max_retries + 1):
            if await self.test_connection(tenant):
                logger.info(f"Database connection established for {tenant}")
                return True
            if attempt < max_retries:
                logger.warning(
                    f"Database connection attempt {attempt}/{max_retries} failed for "
                    f"{tenant}. Retrying in {retry_interval}s..."
                )
                await asyncio.sleep(retry_interval)

        logger.error(
            f"Failed to establish database connection for {tenant} after {max_retries} attempts"
        )
        return False

    async def health_check(self) -> Dict[str, bool]:
        results = {}
        for tenant in TENANTS:
            results[tenant] = await self.test_connection(tenant)
        return results

    async def _query(self, tenant: str, work: Callable[[Any], T]) -> T:
        if tenant not in self.configs:
            raise ValueError(f"Database pool not found for user type: {tenant}")
        try:
            async with self._slot(tenant):
                return await asyncio.to_thread(self._run, tenant, work)
        except (psycopg2.OperationalError, PoolError) as e:
            logger.error(f"Database unavailable for {tenant}: {e}")
            raise DatabaseUnavailableError(
                f"Database connection not available for user type: {tenant}"
            ) from e

    async def fetch_one(
        self, tenant: str, sql: str, params: Optional[Sequence[Any]] = None
    ) -> Optional[Dict[str, Any]]:
        return await self._query(tenant, self._statement(sql, params, "one"))

    async def fetch_all(
        self, tenant: str, sql: str, params: Optional[Sequence[Any]] = None
    ) -> List[Dict[str, Any]]:
        return await self._query(tenant, self._statement(sql, params, "all"))

    async def execute(
        self, tenant: str, sql: str, params: Optional[Sequence[Any]] = None
    ) -> int:
        """Run a statement and return the affected row count"""
        return await self._query(tenant, self._statement(sql, params, "none"))

    async def transaction(self, tenant: str, work: Callable[[Any], T]) -> T:
        """
        Run several statements atomically on one tenant connection

        work receives a RealDictCursor and runs in a worker thread. Its
        statements commit together when it returns and roll back if it raises.
        """
        return await self._query(tenant, work)

    async def init_schema(self, tenant: str) -> None:
        await self.execute(tenant, SCHEMA_SQL)

    def close_all(self) -> None:
        for tenant, pool in list(self._pools.items()):
            try:
                pool.closeall()
            except Exception as e:
                logger.error(f"Error closing pool for {tenant}: {e}")
        self._pools.clear()
        self._slots.clear()


# Global database service instance
database_service = DatabaseService()
