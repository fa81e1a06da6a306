"""
In-memory loader over a snapshot of records.

Records may be mappings or objects with attributes. Each load copies the
current snapshot under a lock, then filters, orders and slices the copy, so
callers on other threads can keep replacing the records between loads.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Generic, Iterable, List, Mapping, Optional, Sequence

from collate.domain.models import field_value
from collate.domain.query import (
    BoolFilter,
    DateRangeFilter,
    OrderSpec,
    Query,
    SelectFilter,
    as_utc,
    parse_order,
)
from collate.domain.result import LoadResult, RecordT
from collate.errors import DataAccessError
from collate.loaders.abstract import AbstractLoader
from collate.utils.logging import get_logger
from collate.utils.text import normalize_for_search

log = get_logger(__name__)


def _sort_key(value: Any) -> tuple:
    if isinstance(value, str):
        return (False, normalize_for_search(value))
    if isinstance(value, datetime):
        return (False, as_utc(value))
    return (value is None, value)


class InMemoryLoader(AbstractLoader, Generic[RecordT]):
    """
    Search, filter, order and paginate a list held in memory.

    Parameters
    ----------
    records : iterable
        Initial snapshot.
    search_fields : sequence of str
        Attributes searched one by one (folded); a record matches when any of them
        contains the search term.
    sort_fields : mapping
        Lower-case order token to attribute name, e.g. ``{"createdat": "created_at"}``.
    filter_fields : mapping
        Filter ``field`` to attribute name. Filters on other fields are skipped.
    default_sort : str
        Attribute used when the order token is absent or unknown.
    """

    name: str = "memory"

    def __init__(
        self,
        records: Iterable[RecordT],
        search_fields: Sequence[str],
        sort_fields: Mapping[str, str],
        filter_fields: Mapping[str, str],
        default_sort: str,
    ) -> None:
        self._records: List[RecordT] = list(records)
        self._lock = threading.Lock()
        self.search_fields = tuple(search_fields)
        self.sort_fields = dict(sort_fields)
        self.filter_fields = dict(filter_fields)
        self.default_sort = default_sort

    def replace(self, records: Iterable[RecordT]) -> None:
        """Swap the backing snapshot."""
        fresh = list(records)
        with self._lock:
            self._records = fresh

    def _snapshot(self) -> List[RecordT]:
        with self._lock:
            return list(self._records)

    def _matches_search(self, record: RecordT, needle: str) -> bool:
        return any(
            needle in normalize_for_search(str(value))
            for value in (field_value(record, name) for name in self.search_fields)
            if value is not None
        )

    def _matches_filter(self, record: RecordT, attribute: str, flt: Any) -> bool:
        value = field_value(record, attribute)
        if isinstance(flt, BoolFilter):
            return bool(value)
        if isinstance(flt, SelectFilter):
            return value is not None and str(value).casefold() == flt.value.casefold()
        if isinstance(flt, DateRangeFilter):
            if not isinstance(value, datetime):
                return False
            value = as_utc(value)
            if flt.lower is not None and value < flt.lower:
                return False
            if flt.upper is not None and value > flt.upper:
                return False
            return True
        return True

    def _predicates(self, query: Query) -> List[tuple]:
        predicates = []
        for flt in query.active_filters():
            attribute = self.filter_fields.get(flt.field)
            if attribute is None:
                log.warning(
                    "Skipping filter on unknown field",
                    extra={"loader": self.name, "field": flt.field, "kind": flt.kind},
                )
                continue
            predicates.append((attribute, flt))
        return predicates

    def order_spec(self, query: Query) -> OrderSpec:
        return parse_order(query.order, self.sort_fields, self.default_sort)

    def load(self, query: Query) -> LoadResult[RecordT]:
        rows = self._snapshot()
        total = len(rows)

        needle: Optional[str] = normalize_for_search(query.search) if query.search else None
        predicates = self._predicates(query)
        matched = [
            row
            for row in rows
            if (needle is None or self._matches_search(row, needle))
            and all(self._matches_filter(row, attribute, flt) for attribute, flt in predicates)
        ]

        spec = self.order_spec(query)
        # list.sort is stable, also with reverse=True, so ties keep snapshot order.
        try:
            matched.sort(
                key=lambda row: _sort_key(field_value(row, spec.field)),
                reverse=spec.descending,
            )
        except TypeError as exc:
            raise DataAccessError(
                f"{self.name}: values of {spec.field!r} cannot be ordered: {exc}"
            ) from exc

        page = matched[query.offset : query.offset + query.limit]
        log.debug(
            "In-memory load",
            extra={
                "loader": self.name,
                "total": total,
                "filtered": len(matched),
                "rows": len(page),
                "order": f"{spec.field} {spec.direction}",
            },
        )
        return LoadResult(total=total, filtered=len(matched), data=page)


__all__ = ["InMemoryLoader"]
