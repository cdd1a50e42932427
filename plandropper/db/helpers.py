"""
Database helper functions for common patterns.
Reduces boilerplate in the repository layer.

Every helper takes the pool handle explicitly and checks out its own
connection, so independent reads can be awaited concurrently.
"""

from typing import Any

import psycopg
from psycopg import sql

from plandropper.db.pool import DatabasePoolManager
from plandropper.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class DatabaseError(Exception):
    """Custom exception for database operations."""

    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


def _preview(query: str | sql.Composable) -> str:
    return str(query)[:100]


def _is_recoverable(error: psycopg.Error) -> bool:
    return isinstance(error, psycopg.OperationalError)


async def fetch_one(
    db: DatabasePoolManager, query: str | sql.Composable, params: tuple | dict = ()
) -> dict[str, Any] | None:
    """
    Execute query and return single row as dict.

    Args:
        db: Pool handle
        query: SQL query with %s placeholders
        params: Query parameters

    Returns:
        Dict with row data or None if no results
    """
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                row = await cur.fetchone()
                return row if row else None

    except psycopg.Error as e:
        logger.error("Database fetch_one error", query=_preview(query), error=str(e))
        raise DatabaseError(
            f"Query failed: {e}", operation="fetch_one", recoverable=_is_recoverable(e)
        ) from e


async def fetch_all(
    db: DatabasePoolManager, query: str | sql.Composable, params: tuple | dict = ()
) -> list[dict[str, Any]]:
    """
    Execute query and return all rows as list of dicts.

    Args:
        db: Pool handle
        query: SQL query with %s placeholders
        params: Query parameters

    Returns:
        List of dicts with row data
    """
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchall()

    except psycopg.Error as e:
        logger.error("Database fetch_all error", query=_preview(query), error=str(e))
        raise DatabaseError(
            f"Query failed: {e}", operation="fetch_all", recoverable=_is_recoverable(e)
        ) from e


async def fetch_val(
    db: DatabasePoolManager, query: str | sql.Composable, params: tuple | dict = ()
) -> Any:
    """
    Execute query and return the first column of the first row.
    """
    row = await fetch_one(db, query, params)
    return next(iter(row.values())) if row else None


async def execute_query(
    db: DatabasePoolManager, query: str | sql.Composable, params: tuple | dict = ()
) -> int:
    """
    Execute a single statement and return number of affected rows.

    A single statement on an autocommit connection is atomic: either every
    column in the SET list is written or none is.
    """
    try:
        async with db.connection() as conn:
            cursor = await conn.execute(query, params)
            return cursor.rowcount

    except psycopg.Error as e:
        logger.error("Database execute error", query=_preview(query), error=str(e))
        raise DatabaseError(
            f"Query failed: {e}", operation="execute", recoverable=_is_recoverable(e)
        ) from e


async def execute_returning(
    db: DatabasePoolManager, query: str | sql.Composable, params: tuple | dict = ()
) -> dict[str, Any] | None:
    """Execute an INSERT/UPDATE ... RETURNING statement and return the row."""
    try:
        async with db.connection() as conn:
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()
            return row if row else None

    except psycopg.Error as e:
        logger.error("Database execute_returning error", query=_preview(query), error=str(e))
        raise DatabaseError(
            f"Query failed: {e}", operation="execute_returning", recoverable=_is_recoverable(e)
        ) from e
