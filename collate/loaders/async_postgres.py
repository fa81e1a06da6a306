"""
Asynchronous Postgres loader for event-loop callers.

Same statements and snapshot rules as PostgresLoader, over a
``psycopg_pool.AsyncConnectionPool``. Concurrent loads each borrow their own
pooled connection, so they never share a transaction.
"""

from __future__ import annotations

from typing import Any, Optional, Type

import psycopg
from psycopg.errors import QueryCanceled
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from pydantic import BaseModel

from collate.config import get_settings
from collate.domain.query import Query
from collate.domain.result import LoadResult
from collate.errors import DataAccessError, LoadTimeoutError
from collate.infrastructure.db_factory import apply_statement_timeout_async
from collate.loaders.postgres import SNAPSHOT_SQL, to_records
from collate.loaders.sql import TableSpec, build_statements
from collate.utils.logging import get_logger

log = get_logger(__name__)


class AsyncPostgresLoader:
    """
    Async counterpart of PostgresLoader; satisfies the AsyncLoader protocol.
    """

    name: str = "async_postgres"

    def __init__(
        self,
        pool: AsyncConnectionPool,
        table: TableSpec,
        record_type: Optional[Type[BaseModel]] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._pool = pool
        self.table = table
        self.record_type = record_type
        if statement_timeout_ms is None:
            statement_timeout_ms = get_settings().db_statement_timeout_ms
        self.statement_timeout_ms = statement_timeout_ms

    async def load(self, query: Query) -> LoadResult[Any]:
        statements = build_statements(self.table, query)
        try:
            async with self._pool.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor(row_factory=dict_row) as cur:
                        await cur.execute(SNAPSHOT_SQL)
                        await apply_statement_timeout_async(cur, self.statement_timeout_ms)
                        await cur.execute(statements.count_total)
                        total = (await cur.fetchone())["n"]
                        await cur.execute(statements.count_filtered, statements.params)
                        filtered = (await cur.fetchone())["n"]
                        await cur.execute(statements.select_page, statements.page_params)
                        rows = await cur.fetchall()
        except QueryCanceled as exc:
            raise LoadTimeoutError(
                f"{self.table.table}: statement exceeded {self.statement_timeout_ms} ms"
            ) from exc
        except psycopg.Error as exc:
            raise DataAccessError(f"{self.table.table}: load failed: {exc}") from exc

        data = to_records(self.record_type, rows, self.table.table)
        log.debug(
            "Async Postgres load",
            extra={
                "loader": self.name,
                "table": self.table.table,
                "total": total,
                "filtered": filtered,
                "rows": len(rows),
            },
        )
        return LoadResult(total=total, filtered=filtered, data=data)


__all__ = ["AsyncPostgresLoader"]
