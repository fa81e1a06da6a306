"""
CSV export of loaded records.

Headers come from field definitions (their labels), values from the matching
record attributes. Without definitions the attributes of the first record are
used as columns.
"""

from __future__ import annotations

import csv
from datetime import date, datetime
from pathlib import Path
from typing import IO, Any, Iterable, List, Mapping, Sequence, Union

from pydantic import BaseModel

from collate.domain.models import field_value
from collate.domain.query import FieldDef


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    return str(value)


def _record_fields(record: Any) -> List[FieldDef]:
    if isinstance(record, BaseModel):
        names: Iterable[str] = type(record).model_fields
    elif isinstance(record, Mapping):
        names = record.keys()
    else:
        names = [name for name in vars(record) if not name.startswith("_")]
    return [FieldDef(field=name) for name in names]


def write_csv(
    records: Sequence[Any],
    fields: Sequence[FieldDef],
    destination: Union[str, Path, IO[str]],
) -> int:
    """
    Write ``records`` as CSV and return the number of data rows written.

    ``destination`` is a path or an already open text stream.
    """
    columns = list(fields) or (_record_fields(records[0]) if records else [])

    def _write(handle: IO[str]) -> None:
        writer = csv.writer(handle)
        writer.writerow([column.title for column in columns])
        for record in records:
            writer.writerow([format_cell(field_value(record, column.field)) for column in columns])

    if isinstance(destination, (str, Path)):
        path = Path(destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="", encoding="utf-8") as handle:
            _write(handle)
    else:
        _write(destination)
    return len(records)


__all__ = ["format_cell", "write_csv"]
