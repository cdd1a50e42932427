"""
PostgreSQL connection pool manager using psycopg_pool.

The manager is an explicitly constructed handle: the FastAPI lifespan owns
one per process (``app.state.db_pool``) and every worker run opens its own.
Repositories receive it through their constructor.
"""

import asyncio
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from plandropper.config import settings
from plandropper.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class DatabasePoolManager:
    """
    Database connection pool with explicit open/close lifecycle.

    Usage:
        db_pool = DatabasePoolManager(settings.SUPABASE_DB_URL)
        await db_pool.initialize()
        async with db_pool.connection() as conn:
            ...
        await db_pool.close()
    """

    def __init__(
        self,
        conninfo: str,
        pool_config: dict[str, Any] | None = None,
        application_name: str | None = None,
    ):
        self.conninfo = conninfo
        self.pool_config = pool_config or settings.get_db_pool_config()
        self.application_name = application_name or f"plandropper-hotness-{settings.environment}"
        self.pool: AsyncConnectionPool | None = None
        self._initialized = False
        self._closed = False

    @classmethod
    def from_settings(cls, application_name: str | None = None) -> "DatabasePoolManager":
        return cls(
            settings.SUPABASE_DB_URL,
            settings.get_db_pool_config(),
            application_name=application_name,
        )

    @property
    def is_ready(self) -> bool:
        return self._initialized and not self._closed

    async def initialize(self) -> None:
        """Open the pool and verify a connection works."""
        if self._initialized:
            logger.warning("Database pool already initialized")
            return

        if self._closed:
            raise RuntimeError("Cannot reinitialize closed pool")

        try:
            logger.info("Initializing database connection pool")

            self.pool = AsyncConnectionPool(
                conninfo=self.conninfo,
                open=False,
                check=AsyncConnectionPool.check_connection,
                configure=self._configure_connection,
                **self.pool_config,
            )
            await self.pool.open()
            await self.pool.wait()

            self._initialized = True
            await self._test_pool_connections()

            logger.info(
                "Database pool initialized successfully",
                min_size=self.pool_config["min_size"],
                max_size=self.pool_config["max_size"],
                timeout=self.pool_config["timeout"],
            )

        except Exception as e:
            logger.error("Failed to initialize database pool", error=str(e))
            self._initialized = False
            if self.pool:
                try:
                    await self.pool.close()
                except Exception as close_error:
                    logger.warning("Error closing half-open pool", error=str(close_error))
                self.pool = None
            raise RuntimeError(f"Database pool initialization failed: {e}") from e

    async def _configure_connection(self, conn: psycopg.AsyncConnection) -> None:
        """Configure each new connection from the pool."""
        conn.row_factory = dict_row

        # Autocommit: every statement is its own transaction.
        await conn.set_autocommit(True)

        await conn.execute(
            sql.SQL("SET application_name = {}").format(sql.Literal(self.application_name))
        )
        await conn.execute("SET timezone = 'UTC'")
        await conn.execute("SET statement_timeout = '30s'")

    async def _test_pool_connections(self) -> None:
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1 AS ok")
                row = await cur.fetchone()
            if not row or row["ok"] != 1:
                raise RuntimeError("Database connection test failed - got unexpected result")

        logger.debug("Database pool connection test passed")

    async def close(self) -> None:
        """Close the connection pool gracefully."""
        if not self._initialized or self._closed:
            return

        try:
            logger.info("Closing database connection pool")
            if self.pool:
                await asyncio.wait_for(self.pool.close(), timeout=30.0)
            logger.info("Database pool closed successfully")
        except TimeoutError:
            logger.warning("Database pool close timed out, forcing shutdown")
        finally:
            self._initialized = False
            self._closed = True

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Get a connection from the pool."""
        if not self._initialized:
            raise RuntimeError("Database pool not initialized. Call initialize() first.")

        if self._closed:
            raise RuntimeError("Database pool is closed")

        async with self.pool.connection() as conn:
            yield conn

    async def health_check(self) -> dict[str, Any]:
        """Pool health with basic stats and connection latency."""
        if not self.is_ready:
            return {"healthy": False, "error": "Pool not initialized", "service": "database_pool"}

        stats = self.pool.get_stats()
        pool_size = stats.get("pool_size", 0)
        pool_available = stats.get("pool_available", 0)
        requests_waiting = stats.get("requests_waiting", 0)

        start_time = time.time()
        try:
            await self._test_pool_connections()
        except (psycopg.Error, RuntimeError) as conn_error:
            return {
                "healthy": False,
                "service": "database_pool",
                "error": f"Connection test failed: {conn_error}",
                "error_type": type(conn_error).__name__,
            }
        connection_time_ms = (time.time() - start_time) * 1000

        pool_utilization = (pool_size - pool_available) / pool_size * 100 if pool_size > 0 else 0

        health_data = {
            "healthy": pool_utilization < 90 and pool_size >= self.pool_config["min_size"],
            "service": "database_pool",
            "connection_time_ms": round(connection_time_ms, 2),
            "pool_stats": {
                "pool_size": pool_size,
                "pool_available": pool_available,
                "pool_utilization_percent": round(pool_utilization, 2),
                "requests_waiting": requests_waiting,
            },
        }

        warnings = []
        if pool_utilization > 80:
            warnings.append(f"High pool utilization: {pool_utilization:.1f}%")
        if requests_waiting > 0:
            warnings.append(f"Requests waiting for connections: {requests_waiting}")
        if warnings:
            health_data["warnings"] = warnings

        return health_data
