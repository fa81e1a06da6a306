"""
SQL composition shared by the sync and async Postgres loaders.

Everything is built from ``psycopg.sql`` composables: identifiers come from the
TableSpec, user input only ever travels as bound parameters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from psycopg import sql

from collate.domain.query import (
    BoolFilter,
    DateRangeFilter,
    OrderSpec,
    Query,
    SelectFilter,
    parse_order,
)
from collate.utils.logging import get_logger
from collate.utils.text import fold_table, normalize_for_search

log = get_logger(__name__)


@dataclass(frozen=True)
class TableSpec:
    """
    How a logical record maps onto one table.

    ``sort_columns`` maps lower-case order tokens to columns and
    ``filter_columns`` maps filter fields to columns; ``key`` breaks ordering
    ties so consecutive pages never overlap.
    """

    table: str
    key: str
    columns: Tuple[str, ...]
    search_columns: Tuple[str, ...]
    sort_columns: Mapping[str, str] = field(default_factory=dict)
    filter_columns: Mapping[str, str] = field(default_factory=dict)
    default_sort: str = "created_at"
    schema: Optional[str] = None

    def identifier(self) -> sql.Identifier:
        if self.schema:
            return sql.Identifier(self.schema, self.table)
        return sql.Identifier(self.table)


@dataclass(frozen=True)
class LoadStatements:
    count_total: sql.Composed
    count_filtered: sql.Composed
    select_page: sql.Composed
    params: Tuple[Any, ...]
    page_params: Tuple[Any, ...]
    order: OrderSpec


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def fold_expression(column: sql.Composable) -> sql.Composable:
    """Server-side equivalent of ``normalize_for_search`` for one column."""
    single = {src: dst for src, dst in fold_table().items() if len(dst) == 1}
    multi = {src: dst for src, dst in fold_table().items() if len(dst) > 1}
    expr: sql.Composable = sql.SQL("translate(CAST({} AS text), {}, {})").format(
        column,
        sql.Literal("".join(single.keys())),
        sql.Literal("".join(single.values())),
    )
    for src, dst in multi.items():
        expr = sql.SQL("replace({}, {}, {})").format(expr, sql.Literal(src), sql.Literal(dst))
    return sql.SQL("lower({})").format(expr)


def _search_condition(spec: TableSpec, search: str) -> Tuple[sql.Composable, List[Any]]:
    pattern = f"%{escape_like(normalize_for_search(search))}%"
    clauses = [
        sql.SQL("{} LIKE {} ESCAPE '\\'").format(
            fold_expression(sql.Identifier(column)), sql.Placeholder()
        )
        for column in spec.search_columns
    ]
    condition = sql.SQL("({})").format(sql.SQL(" OR ").join(clauses))
    return condition, [pattern] * len(clauses)


def _filter_conditions(spec: TableSpec, query: Query) -> Tuple[List[sql.Composable], List[Any]]:
    conditions: List[sql.Composable] = []
    params: List[Any] = []
    for flt in query.active_filters():
        column = spec.filter_columns.get(flt.field)
        if column is None:
            log.warning(
                "Skipping filter on unknown field",
                extra={"table": spec.table, "field": flt.field, "kind": flt.kind},
            )
            continue
        ident = sql.Identifier(column)
        if isinstance(flt, BoolFilter):
            conditions.append(sql.SQL("{} = {}").format(ident, sql.Placeholder()))
            params.append(True)
        elif isinstance(flt, SelectFilter):
            conditions.append(
                sql.SQL("lower(CAST({} AS text)) = {}").format(ident, sql.Placeholder())
            )
            params.append(flt.value.lower())
        elif isinstance(flt, DateRangeFilter):
            if flt.lower is not None:
                conditions.append(sql.SQL("{} >= {}").format(ident, sql.Placeholder()))
                params.append(flt.lower)
            if flt.upper is not None:
                conditions.append(sql.SQL("{} <= {}").format(ident, sql.Placeholder()))
                params.append(flt.upper)
    return conditions, params


def build_statements(spec: TableSpec, query: Query) -> LoadStatements:
    """
    Compose the total count, filtered count and page statements for ``query``.

    The filtered count and the page share one WHERE clause and one parameter
    list, so they always describe the same set of rows.
    """
    conditions: List[sql.Composable] = []
    params: List[Any] = []
    if query.search and spec.search_columns:
        condition, search_params = _search_condition(spec, query.search)
        conditions.append(condition)
        params.extend(search_params)
    filter_conditions, filter_params = _filter_conditions(spec, query)
    conditions.extend(filter_conditions)
    params.extend(filter_params)

    table = spec.identifier()
    where = (
        sql.SQL(" WHERE {}").format(sql.SQL(" AND ").join(conditions))
        if conditions
        else sql.SQL("")
    )

    order = parse_order(query.order, spec.sort_columns, spec.default_sort)
    direction = sql.SQL("DESC") if order.descending else sql.SQL("ASC")
    order_by = sql.SQL("{} {}").format(sql.Identifier(order.field), direction)
    if order.field != spec.key:
        order_by = sql.SQL("{}, {} ASC").format(order_by, sql.Identifier(spec.key))

    return LoadStatements(
        count_total=sql.SQL("SELECT count(*) AS n FROM {}").format(table),
        count_filtered=sql.SQL("SELECT count(*) AS n FROM {}{}").format(table, where),
        select_page=sql.SQL("SELECT {} FROM {}{} ORDER BY {} LIMIT {} OFFSET {}").format(
            sql.SQL(", ").join(sql.Identifier(column) for column in spec.columns),
            table,
            where,
            order_by,
            sql.Placeholder(),
            sql.Placeholder(),
        ),
        params=tuple(params),
        page_params=tuple(params) + (query.limit, query.offset),
        order=order,
    )


__all__ = [
    "LoadStatements",
    "TableSpec",
    "build_statements",
    "escape_like",
    "fold_expression",
]
