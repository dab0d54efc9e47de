# app/db/helpers.py
"""
Database helper for the record store's read pattern.
"""

from typing import Any

import psycopg
from psycopg import sql

from app.db.pool import get_db_connection
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

Query = str | sql.Composable


class DatabaseError(Exception):
    """Custom exception for database operations."""

    def __init__(self, message: str, operation: str = "unknown"):
        super().__init__(message)
        self.operation = operation


def _preview(query: Query) -> str:
    return query[:100] if isinstance(query, str) else repr(query)[:100]


async def fetch_all(
    query: Query, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> list[dict[str, Any]]:
    """
    Execute query and return all rows as list of dicts.

    Args:
        query: SQL query (plain string or psycopg.sql composition) with %s placeholders
        params: Query parameters
        connection: Optional existing connection

    Returns:
        List of dicts with row data
    """
    try:
        if connection:
            async with connection.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchall()
        else:
            async with await get_db_connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(query, params)
                    return await cur.fetchall()

    except psycopg.Error as e:
        logger.error("Database fetch_all error", query=_preview(query), error=str(e))
        raise DatabaseError(f"Query failed: {e}", operation="fetch_all") from e
