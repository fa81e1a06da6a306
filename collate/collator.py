"""
Collate: the coordinator between a table UI and a loader.

Holds the initial query, the loader and the field definitions of one table,
turns request parameters into queries, runs the loader, and hands back a
CollateResult a renderer can display. A failed load comes back with ``error``
set instead of masquerading as an empty page.

Usage:
    from collate.collator import Collate
    from collate.demo import FILTER_DEFS, demo_loader

    table = Collate(demo_loader(), filter_fields=FILTER_DEFS)
    result = table.render({"Search": "josé", "Order": "name asc"})
    print(result.filtered, result.pages)
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import IO, Any, Mapping, Optional, Sequence, Union

from collate.config import Settings, get_settings
from collate.domain.query import FieldDef, Query
from collate.domain.result import CollateResult, LoadResult
from collate.export import write_csv
from collate.loaders.abstract import LoaderLike, as_load_function, loader_name
from collate.request import apply_request
from collate.utils.logging import get_logger

log = get_logger(__name__)


class Collate:
    """
    One table's query state and loader.

    Parameters
    ----------
    loader : Loader or callable
        Resolves queries; see ``collate.loaders``.
    init : Query, optional
        Starting query; defaults to an empty query with the configured page size.
    search_fields, sort_fields, filter_fields, export_fields : sequence of FieldDef
        Column definitions. ``filter_fields[i]`` supplies field and kind for
        request filter ``i``; export falls back from ``export_fields`` to
        ``sort_fields`` to ``filter_fields``.
    """

    def __init__(
        self,
        loader: LoaderLike,
        init: Optional[Query] = None,
        *,
        search_fields: Sequence[FieldDef] = (),
        sort_fields: Sequence[FieldDef] = (),
        filter_fields: Sequence[FieldDef] = (),
        export_fields: Sequence[FieldDef] = (),
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self._load = as_load_function(loader)
        self.name = loader_name(loader)
        self.init = init if init is not None else Query(limit=settings.default_limit)
        self.export_limit = settings.export_limit
        self.search_fields = tuple(search_fields)
        self.sort_fields = tuple(sort_fields)
        self.filter_fields = tuple(filter_fields)
        self.export_fields = tuple(export_fields)

    def query_for(self, params: Optional[Mapping[str, str]] = None) -> Query:
        """The initial query with ``params`` applied."""
        if not params:
            return self.init
        return apply_request(self.init, params, self.filter_fields)

    def render(self, params: Optional[Mapping[str, str]] = None) -> CollateResult:
        """Load the page described by ``params`` (search, sort, filter or paging)."""
        return self.run(self.query_for(params))

    def reset(self) -> CollateResult:
        """Load the initial query, discarding any request state."""
        return self.run(self.init)

    def resize(self, params: Optional[Mapping[str, str]] = None) -> CollateResult:
        """Load twice as many rows as requested ("load more")."""
        query = self.query_for(params)
        return self.run(query.replace(limit=query.limit * 2))

    def run(self, query: Query) -> CollateResult:
        """Execute ``query`` and report the outcome; never raises for load failures."""
        start = time.perf_counter()
        log.debug(f"[LOAD START] {self.name}", extra={"loader": self.name, "search": query.search})
        try:
            loaded = self._execute(query)
        except Exception as exc:  # noqa: BLE001 - failure is reported on the result
            duration = time.perf_counter() - start
            log.exception(
                f"[LOAD FAILED] {self.name}",
                extra={"loader": self.name, "duration_seconds": round(duration, 3)},
            )
            return CollateResult(
                query=query,
                error=str(exc) or type(exc).__name__,
                duration_seconds=duration,
            )

        duration = time.perf_counter() - start
        log.info(
            f"[LOAD SUCCESS] {self.name}",
            extra={
                "loader": self.name,
                "total": loaded.total,
                "filtered": loaded.filtered,
                "rows": len(loaded.data),
                "offset": query.offset,
                "limit": query.limit,
                "duration_seconds": round(duration, 3),
            },
        )
        return CollateResult(
            query=query,
            total=loaded.total,
            filtered=loaded.filtered,
            data=list(loaded.data),
            duration_seconds=duration,
        )

    def _execute(self, query: Query) -> LoadResult[Any]:
        loaded = self._load(query)
        if not isinstance(loaded, LoadResult):
            loaded = LoadResult.model_validate(loaded)
        if len(loaded.data) > query.limit:
            log.warning(
                f"[LOAD TRUNCATED] {self.name} returned more rows than requested",
                extra={"loader": self.name, "rows": len(loaded.data), "limit": query.limit},
            )
            loaded = LoadResult(
                total=loaded.total,
                filtered=loaded.filtered,
                data=list(loaded.data)[: query.limit],
            )
        return loaded

    def export_columns(self) -> Sequence[FieldDef]:
        return self.export_fields or self.sort_fields or self.filter_fields

    def export(
        self,
        destination: Union[str, Path, IO[str]],
        params: Optional[Mapping[str, str]] = None,
    ) -> int:
        """
        Write every row matching ``params`` as CSV and return the row count.

        Paging is ignored: the export starts at offset 0 and is capped by the
        configured export limit. Nothing is written when no rows match.

        Raises
        ------
        LoadError
            If the loader fails; exports have no result object to carry it.
        """
        query = self.query_for(params).replace(offset=0, limit=self.export_limit)
        loaded = self._execute(query)
        if not loaded.data:
            log.info("No data to export.", extra={"loader": self.name})
            return 0
        written = write_csv(loaded.data, self.export_columns(), destination)
        log.info(
            f"[EXPORT] {self.name}",
            extra={"loader": self.name, "rows": written, "filtered": loaded.filtered},
        )
        return written


__all__ = ["Collate"]
