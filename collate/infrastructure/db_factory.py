"""
Database connection factory utilities for collate.

Provides the connection sources Postgres loaders are constructed with: an
owned PoolManager for sync/async pools, and ExclusiveConnection for callers
holding a single connection that must be shared. Nothing here is global; the
application creates these objects and passes them into loaders.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

import asyncio
import threading
from contextlib import contextmanager
from typing import Generator, Optional

import psycopg
from psycopg import AsyncCursor, Connection, Cursor, sql
from psycopg_pool import AsyncConnectionPool, ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from collate.config import Settings, get_settings


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def _timeout_statement(timeout_ms: int) -> sql.Composed:
    # SET does not accept bind parameters.
    return sql.SQL("SET LOCAL statement_timeout = {}").format(sql.Literal(int(timeout_ms)))


def apply_statement_timeout(cur: Cursor, timeout_ms: Optional[int]) -> None:
    """Bound every statement of the current transaction; 0 or None disables."""
    if timeout_ms and timeout_ms > 0:
        cur.execute(_timeout_statement(timeout_ms))


async def apply_statement_timeout_async(cur: AsyncCursor, timeout_ms: Optional[int]) -> None:
    if timeout_ms and timeout_ms > 0:
        await cur.execute(_timeout_statement(timeout_ms))


class PoolManager:
    """
    Owns the sync and async connection pools of one application.

    Pools are created lazily on first use and released by ``close_all`` /
    ``aclose``, or by leaving the ``with`` block.
    """

    def __init__(
        self,
        dsn: Optional[str] = None,
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.dsn = dsn or build_dsn(settings)
        self.min_size = min_size if min_size is not None else settings.db_pool_min_size
        self.max_size = max_size if max_size is not None else settings.db_pool_max_size
        self._lock = threading.Lock()
        self._async_lock = asyncio.Lock()
        self._sync_pool: Optional[ConnectionPool] = None
        self._async_pool: Optional[AsyncConnectionPool] = None

    def get_sync_pool(self) -> ConnectionPool:
        """
        Get or create the synchronous connection pool.

        Returns
        -------
        ConnectionPool
            The managed sync pool instance.
        """
        with self._lock:
            if self._sync_pool is None:
                self._sync_pool = ConnectionPool(
                    conninfo=self.dsn,
                    min_size=self.min_size,
                    max_size=self.max_size,
                    open=True,
                )
            return self._sync_pool

    async def get_async_pool(self) -> AsyncConnectionPool:
        """
        Get or create the asynchronous connection pool, opened and ready.

        Returns
        -------
        AsyncConnectionPool
            The managed async pool instance.
        """
        async with self._async_lock:
            if self._async_pool is None:
                pool = AsyncConnectionPool(
                    conninfo=self.dsn,
                    min_size=self.min_size,
                    max_size=self.max_size,
                    open=False,
                )
                await pool.open()
                self._async_pool = pool
            return self._async_pool

    @contextmanager
    def connection(self) -> Generator[Connection, None, None]:
        """
        Context manager for obtaining a sync connection from the pool.

        Example
        -------
            with PoolManager() as manager:
                with manager.connection() as conn:
                    conn.execute("SELECT 1")
        """
        pool = self.get_sync_pool()
        with pool.connection() as conn:
            yield conn

    def close_all(self) -> None:
        """Close the sync pool. The async pool is closed by ``aclose``."""
        with self._lock:
            if self._sync_pool is not None:
                try:
                    self._sync_pool.close()
                finally:
                    self._sync_pool = None

    async def aclose(self) -> None:
        self.close_all()
        if self._async_pool is not None:
            try:
                await self._async_pool.close()
            finally:
                self._async_pool = None

    def __enter__(self) -> "PoolManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close_all()

    async def __aenter__(self) -> "PoolManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class ExclusiveConnection:
    """
    Share one connection between callers by serializing access to it.

    Each ``connection()`` block holds the lock for its whole duration, so a
    loader's statements never interleave with another caller's.
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()

    @contextmanager
    def connection(self) -> Generator[Connection, None, None]:
        with self._lock:
            yield self._conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    Use this for one-off operations. Prefer a PoolManager for repeated use.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


__all__ = [
    "ExclusiveConnection",
    "PoolManager",
    "apply_statement_timeout",
    "apply_statement_timeout_async",
    "build_dsn",
    "get_sync_connection",
]
