"""
Postgres loader built on psycopg 3.

Each load borrows one connection from the injected source, runs the total
count, the filtered count and the page query inside a single read-only
REPEATABLE READ transaction, and gives the connection back before returning.
"""

from __future__ import annotations

import time
from contextlib import AbstractContextManager
from typing import Any, Dict, List, Optional, Protocol, Type

import psycopg
from psycopg import Connection, sql
from psycopg.errors import QueryCanceled
from psycopg.rows import dict_row
from pydantic import BaseModel, ValidationError

from collate.config import get_settings
from collate.domain.query import Query
from collate.domain.result import LoadResult
from collate.errors import DataAccessError, LoadTimeoutError
from collate.infrastructure.db_factory import apply_statement_timeout
from collate.loaders.abstract import AbstractLoader
from collate.loaders.sql import TableSpec, build_statements
from collate.utils.logging import get_logger

log = get_logger(__name__)

# Counts and page must come from the same snapshot.
SNAPSHOT_SQL = sql.SQL("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ, READ ONLY")


class ConnectionSource(Protocol):
    """Anything that lends a connection for the duration of a ``with`` block."""

    def connection(self) -> AbstractContextManager[Connection]:
        ...


def to_records(
    record_type: Optional[Type[BaseModel]], rows: List[Dict[str, Any]], table: str
) -> List[Any]:
    """Validate fetched rows into ``record_type``; a row that does not fit is a data error."""
    if record_type is None:
        return rows
    try:
        return [record_type.model_validate(row) for row in rows]
    except ValidationError as exc:
        raise DataAccessError(
            f"{table}: row does not match {record_type.__name__}: {exc}"
        ) from exc


class PostgresLoader(AbstractLoader):
    """
    Load pages from one table through a psycopg connection source.

    Parameters
    ----------
    source : ConnectionSource
        A ``psycopg_pool.ConnectionPool``, ``PoolManager`` or ``ExclusiveConnection``.
    table : TableSpec
        Table, columns and the search/sort/filter mappings.
    record_type : pydantic model class, optional
        Rows are validated into this type; plain dicts when omitted.
    statement_timeout_ms : int, optional
        Per-statement timeout; defaults to ``DB_STATEMENT_TIMEOUT_MS``.
    """

    name: str = "postgres"

    def __init__(
        self,
        source: ConnectionSource,
        table: TableSpec,
        record_type: Optional[Type[BaseModel]] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._source = source
        self.table = table
        self.record_type = record_type
        if statement_timeout_ms is None:
            statement_timeout_ms = get_settings().db_statement_timeout_ms
        self.statement_timeout_ms = statement_timeout_ms

    def load(self, query: Query) -> LoadResult[Any]:
        statements = build_statements(self.table, query)
        start = time.perf_counter()
        try:
            with self._source.connection() as conn:
                with conn.transaction():
                    with conn.cursor(row_factory=dict_row) as cur:
                        cur.execute(SNAPSHOT_SQL)
                        apply_statement_timeout(cur, self.statement_timeout_ms)
                        cur.execute(statements.count_total)
                        total = cur.fetchone()["n"]
                        cur.execute(statements.count_filtered, statements.params)
                        filtered = cur.fetchone()["n"]
                        cur.execute(statements.select_page, statements.page_params)
                        rows = cur.fetchall()
        except QueryCanceled as exc:
            raise LoadTimeoutError(
                f"{self.table.table}: statement exceeded {self.statement_timeout_ms} ms"
            ) from exc
        except psycopg.Error as exc:
            raise DataAccessError(f"{self.table.table}: load failed: {exc}") from exc

        data = to_records(self.record_type, rows, self.table.table)
        log.debug(
            "Postgres load",
            extra={
                "loader": self.name,
                "table": self.table.table,
                "total": total,
                "filtered": filtered,
                "rows": len(rows),
                "duration_seconds": time.perf_counter() - start,
            },
        )
        return LoadResult(total=total, filtered=filtered, data=data)


__all__ = ["ConnectionSource", "PostgresLoader", "SNAPSHOT_SQL", "to_records"]
