from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from collate.domain.models import field_value
from collate.domain.query import FieldDef
from collate.domain.result import CollateResult
from collate.export import format_cell


def pager_summary(result: CollateResult) -> str:
    """One-line paging status, e.g. ``Rows 11-20 of 42 (100 total) | Page 2/5``."""
    return (
        f"Rows {result.first_row}-{result.last_row} of {result.filtered} "
        f"({result.total} total) | Page {result.page}/{max(result.pages, 1)}"
    )


def empty_message(result: CollateResult) -> str:
    if result.total == 0:
        return "No records found"
    return "No records found for the selected filter"


def build_table(
    result: CollateResult,
    columns: Sequence[FieldDef],
    search_fields: Sequence[FieldDef] = (),
) -> Table:
    """
    Build a rich Table for one page of results.

    Parameters
    ----------
    result : CollateResult
        The page to show; its query supplies the caption.
    columns : sequence of FieldDef
        Displayed columns, in order.
    search_fields : sequence of FieldDef
        Listed in the caption when a search is active.
    """
    query = result.query
    title_bits = []
    if query.search:
        searched = ", ".join(f.title for f in search_fields) or "all fields"
        title_bits.append(f"search '{query.search}' in {searched}")
    active = query.active_filters()
    if active:
        title_bits.append("filters: " + ", ".join(f.field for f in active))
    if query.order:
        title_bits.append(f"order: {query.order}")

    table = Table(
        title=" | ".join(title_bits) or None,
        caption=pager_summary(result),
        box=box.SIMPLE_HEAVY,
        show_lines=False,
    )
    for column in columns:
        table.add_column(column.title, overflow="fold")
    for record in result.data:
        table.add_row(*(format_cell(field_value(record, column.field)) for column in columns))
    return table


def render_result(
    result: CollateResult,
    columns: Sequence[FieldDef],
    search_fields: Sequence[FieldDef] = (),
    console: Optional[Console] = None,
) -> None:
    """Print a page, an empty state or an error state."""
    console = console or Console()
    if result.failed:
        console.print(Panel(str(result.error), title="Load failed", border_style="red"))
        return
    if not result.data:
        console.print(Panel(empty_message(result), subtitle=pager_summary(result)))
        return
    console.print(build_table(result, columns, search_fields))


def result_payload(result: CollateResult) -> Dict[str, Any]:
    """JSON-ready dict of a result, for `--json` output."""
    return {
        "total": result.total,
        "filtered": result.filtered,
        "pages": result.pages,
        "page": result.page,
        "error": result.error,
        "duration_seconds": round(result.duration_seconds, 4),
        "query": result.query.model_dump(mode="json"),
        "data": [
            record.model_dump(mode="json") if hasattr(record, "model_dump") else record
            for record in result.data
        ],
    }


__all__ = [
    "build_table",
    "empty_message",
    "pager_summary",
    "render_result",
    "result_payload",
]
