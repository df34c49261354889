"""Oracle connection pool management and the unit-of-work scope.

Repositories normally acquire a pooled connection per statement and commit
immediately. Inside :func:`atomic` every repository call on the current
thread/task shares one connection instead, and the whole block commits once
or rolls back together.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import oracledb

from luckylottery.core.config import Settings

logger = logging.getLogger(__name__)

# Module-level pool reference
_pool: oracledb.ConnectionPool | None = None

# Connection bound by the innermost active unit of work, if any
_active_connection: ContextVar[Any | None] = ContextVar("active_connection", default=None)


async def init_pool(settings: Settings) -> oracledb.ConnectionPool:
    """Create and return the Oracle connection pool."""
    global _pool
    if _pool is not None:
        return _pool

    # Money columns must come back as Decimal, never float
    oracledb.defaults.fetch_decimals = True

    logger.info("Creating Oracle connection pool: %s", settings.oracle_dsn)
    _pool = oracledb.create_pool(
        user=settings.oracle_user,
        password=settings.oracle_password,
        dsn=settings.oracle_dsn,
        min=settings.oracle_pool_min,
        max=settings.oracle_pool_max,
        increment=settings.oracle_pool_increment,
    )
    logger.info(
        "Oracle connection pool created (min=%d, max=%d)",
        settings.oracle_pool_min,
        settings.oracle_pool_max,
    )
    return _pool


async def close_pool() -> None:
    """Close the Oracle connection pool."""
    global _pool
    if _pool is not None:
        _pool.close(force=True)
        _pool = None
        logger.info("Oracle connection pool closed")


def get_pool() -> oracledb.ConnectionPool:
    """Get the current connection pool. Raises if not initialized."""
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _pool


def get_active_connection() -> Any | None:
    """Return the connection of the enclosing unit of work, or ``None``."""
    return _active_connection.get()


@contextmanager
def atomic(pool: Any) -> Iterator[Any]:
    """Run a block of repository calls as a single database transaction.

    Nested blocks join the outermost one; only the outermost block commits
    or rolls back.
    """
    current = _active_connection.get()
    if current is not None:
        yield current
        return

    conn = pool.acquire()
    token = _active_connection.set(conn)
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        logger.warning("Unit of work rolled back")
        raise
    finally:
        _active_connection.reset(token)
        conn.close()
