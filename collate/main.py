from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

import typer

from collate.collator import Collate
from collate.config import get_settings
from collate.demo import EXPORT_DEFS, FILTER_DEFS, SORT_DEFS, demo_loader, users_table
from collate.domain.models import User
from collate.domain.query import FieldDef, Query
from collate.errors import LoadError
from collate.infrastructure.db_factory import PoolManager
from collate.loaders.postgres import PostgresLoader
from collate.reporter import render_result, result_payload
from collate.utils.logging import configure_logging

app = typer.Typer(help="collate CLI: search, filter, sort and page through records.")

SOURCES = ("demo", "postgres")
SEARCH_DEFS = tuple(d for d in SORT_DEFS if d.field in {"name", "email", "city"})


def _request_params(
    search: Optional[str],
    order: Optional[str],
    limit: Optional[int],
    offset: Optional[int],
    active: bool,
    role: Optional[str],
    created_from: Optional[str],
    created_to: Optional[str],
) -> Dict[str, str]:
    """Express CLI options as the request parameters a table form would post."""
    params: Dict[str, str] = {}
    if search is not None:
        params["Search"] = search
    if order is not None:
        params["Order"] = order
    if limit is not None:
        params["Limit"] = str(limit)
    if offset is not None:
        params["Offset"] = str(offset)
    # Indices follow FILTER_DEFS: active, created_at, role.
    params["Filter.0.Bool"] = "true" if active else "false"
    params["Filter.1.Dates.From"] = created_from or ""
    params["Filter.1.Dates.To"] = created_to or ""
    params["Filter.2.Value"] = role or ""
    return params


@contextmanager
def _open_table(source: str) -> Iterator[Collate]:
    settings = get_settings()
    init = Query(order="createdat desc", limit=settings.default_limit)
    fields: Dict[str, Tuple[FieldDef, ...]] = {
        "search_fields": SEARCH_DEFS,
        "sort_fields": SORT_DEFS,
        "filter_fields": FILTER_DEFS,
        "export_fields": EXPORT_DEFS,
    }
    if source == "demo":
        yield Collate(demo_loader(), init, settings=settings, **fields)
        return
    if source == "postgres":
        with PoolManager() as manager:
            loader = PostgresLoader(manager.get_sync_pool(), users_table(), record_type=User)
            yield Collate(loader, init, settings=settings, **fields)
        return
    raise typer.BadParameter(f"Unknown source '{source}'. Available: {', '.join(SOURCES)}")


SourceOption = typer.Option("demo", "--source", help="Data source: demo or postgres.")
SearchOption = typer.Option(None, "--search", "-q", help="Accent-insensitive free text.")
OrderOption = typer.Option(None, "--order", "-o", help="'<field> [asc|desc]'.")
ActiveOption = typer.Option(False, "--active", help="Only active users.")
RoleOption = typer.Option(None, "--role", help="Only users with this role.")
FromOption = typer.Option(None, "--created-from", help="YYYY-MM-DD, inclusive.")
ToOption = typer.Option(None, "--created-to", help="YYYY-MM-DD, inclusive.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"table={settings.users_table} limit={settings.default_limit} "
        f"export_limit={settings.export_limit} timeout_ms={settings.db_statement_timeout_ms}"
    )


@app.command()
def query(
    source: str = SourceOption,
    search: Optional[str] = SearchOption,
    order: Optional[str] = OrderOption,
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Page size."),
    offset: Optional[int] = typer.Option(None, "--offset", help="Row offset."),
    active: bool = ActiveOption,
    role: Optional[str] = RoleOption,
    created_from: Optional[str] = FromOption,
    created_to: Optional[str] = ToOption,
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """
    Load one page and print it as a table (or JSON).
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    params = _request_params(search, order, limit, offset, active, role, created_from, created_to)

    with _open_table(source) as table:
        result = table.render(params)
        if as_json:
            typer.echo(json.dumps(result_payload(result), indent=2, default=str))
        else:
            render_result(result, table.export_columns(), table.search_fields)

    if result.failed:
        raise typer.Exit(code=1)


@app.command()
def export(
    output: Path = typer.Option(..., "--output", help="CSV file to write."),
    source: str = SourceOption,
    search: Optional[str] = SearchOption,
    order: Optional[str] = OrderOption,
    active: bool = ActiveOption,
    role: Optional[str] = RoleOption,
    created_from: Optional[str] = FromOption,
    created_to: Optional[str] = ToOption,
) -> None:
    """
    Export every matching row as CSV, ignoring paging.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    params = _request_params(search, order, None, None, active, role, created_from, created_to)

    with _open_table(source) as table:
        try:
            written = table.export(output, params)
        except LoadError as exc:
            typer.echo(f"Export failed: {exc}", err=True)
            raise typer.Exit(code=1)

    if written:
        typer.echo(f"Exported {written} rows to {output}")
    else:
        typer.echo("No data to export.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
