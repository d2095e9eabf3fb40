"""
db.py — DuckDB connection pool and scoped transactions.

One DuckDB database handle per process. Each logical operation acquires a
dedicated cursor (an independent DuckDB connection to the same database)
and releases it on every exit path. Writes go through transaction(), which
commits on success and rolls back and re-raises on any error.

Usage:
    from campus_shared.db import get_connection_pool

    pool = get_connection_pool()
    with pool.acquire() as conn:                 # reads
        conn.execute("SELECT 1").fetchone()

    with pool.transaction() as conn:             # writes
        conn.execute("DELETE FROM entities WHERE id = ?", [42])
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

import duckdb
import structlog

from campus_shared.config import settings

logger = structlog.get_logger(__name__)


class ConnectionPool:
    """
    Hands out per-operation DuckDB cursors from one shared database handle.

    The root connection is only used to spawn cursors; it never runs
    statements itself, so no operation shares a connection with another.
    """

    def __init__(self, database_path: str | None = None) -> None:
        path = database_path or settings.database_path
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self.database_path = path
        self._lock = threading.Lock()
        self._root: duckdb.DuckDBPyConnection | None = duckdb.connect(path)
        logger.info("duckdb_connected", path=path)

    @property
    def closed(self) -> bool:
        return self._root is None

    @contextmanager
    def acquire(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """Yield a dedicated cursor, closing it however the block exits."""
        with self._lock:
            if self._root is None:
                raise RuntimeError("ConnectionPool is closed")
            conn = self._root.cursor()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """
        Yield a cursor inside an open transaction.

        Commits when the block completes; rolls back and re-raises when it
        raises. The cursor is released in both cases.
        """
        with self.acquire() as conn:
            conn.begin()
            try:
                yield conn
            except BaseException:
                conn.rollback()
                logger.debug("transaction_rolled_back")
                raise
            conn.commit()

    def close(self) -> None:
        with self._lock:
            if self._root is not None:
                self._root.close()
                self._root = None
                logger.info("duckdb_closed", path=self.database_path)


@contextmanager
def use_connection(
    pool: ConnectionPool,
    conn: duckdb.DuckDBPyConnection | None = None,
) -> Iterator[duckdb.DuckDBPyConnection]:
    """Reuse *conn* when the caller already holds one, else acquire from *pool*."""
    if conn is not None:
        yield conn
        return
    with pool.acquire() as acquired:
        yield acquired


def fetch_dicts(
    conn: duckdb.DuckDBPyConnection,
    sql: str,
    params: Sequence[Any] | None = None,
) -> list[dict[str, Any]]:
    """Run *sql* and return every row as a column-name → value dict."""
    cursor = conn.execute(sql, params or [])
    columns = [d[0] for d in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


# ---------------------------------------------------------------------------
# Process-wide pool (thread-safe via lock)
# ---------------------------------------------------------------------------
_pool_lock = threading.Lock()
_pool: Optional[ConnectionPool] = None


def get_connection_pool() -> ConnectionPool:
    """
    Return the singleton ConnectionPool for settings.database_path.

    Creates parent directories of the database file if they don't exist.
    """
    global _pool

    with _pool_lock:
        if _pool is None or _pool.closed:
            _pool = ConnectionPool(settings.database_path)
        return _pool


def reset_connection_pool() -> None:
    """Close and drop the singleton pool (useful in tests)."""
    global _pool
    with _pool_lock:
        if _pool is not None:
            _pool.close()
            _pool = None
