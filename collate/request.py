"""
Turning UI request parameters into a Query, and back.

Parameter names follow the table component's form fields: ``Search``,
``Order``, ``Limit``, ``Offset`` and indexed filters
``Filter.<i>.Field|As|Value|Bool|Dates.From|Dates.To``. Parsing is lenient:
unparseable numbers keep the base value, unparseable dates are treated as
unset, and filters of unknown kind are dropped with a warning.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Dict, Mapping, Optional, Sequence

from pydantic import ValidationError

from collate.domain.query import (
    BoolFilter,
    DateRangeFilter,
    FieldDef,
    Filter,
    FilterKind,
    Query,
    SelectFilter,
    as_utc,
)
from collate.errors import InvalidQueryError
from collate.utils.logging import get_logger

log = get_logger(__name__)

# Kind names, plus the numeric codes older form posts still send.
_KINDS: Dict[str, FilterKind] = {
    "bool": "bool",
    "select": "select",
    "dates": "dates",
    "0": "bool",
    "3": "dates",
    "4": "select",
}
_TRUTHY = {"1", "true", "on", "yes"}
_FILTER_PREFIX = "Filter."


def parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def parse_int(value: Optional[str], fallback: int) -> int:
    try:
        return int((value or "").strip())
    except ValueError:
        return fallback


def parse_date(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse ``YYYY-MM-DD`` or an ISO datetime into an aware UTC datetime.

    Date-only values widen to the first (or, with ``end_of_day``, the last)
    instant of that day so an inclusive range covers the whole day.
    """
    text = (value or "").strip()
    if not text:
        return None
    try:
        if len(text) == 10 and "T" not in text:
            day = date.fromisoformat(text)
            return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=timezone.utc)
        return as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        log.debug("Ignoring unparseable date", extra={"value": text})
        return None


def _filter_groups(params: Mapping[str, str]) -> Dict[int, Dict[str, str]]:
    groups: Dict[int, Dict[str, str]] = {}
    for key, value in params.items():
        if not key.startswith(_FILTER_PREFIX):
            continue
        index_part, _, attribute = key[len(_FILTER_PREFIX):].partition(".")
        if not attribute or not index_part.isdigit():
            continue
        groups.setdefault(int(index_part), {})[attribute] = value
    return dict(sorted(groups.items()))


def _build_filter(
    index: int, values: Mapping[str, str], definitions: Sequence[FieldDef]
) -> Optional[Filter]:
    definition = definitions[index] if index < len(definitions) else None
    field = (values.get("Field") or "").strip() or (definition.field if definition else "")
    token = (values.get("As") or "").strip().lower()
    kind = _KINDS.get(token) if token else (definition.kind if definition else None)
    if not field or kind is None:
        log.warning(
            "Dropping filter without field or known kind",
            extra={"index": index, "field": field, "kind": token},
        )
        return None
    if kind == "bool":
        return BoolFilter(field=field, value=parse_bool(values.get("Bool")))
    if kind == "select":
        return SelectFilter(field=field, value=values.get("Value") or "")
    return DateRangeFilter(
        field=field,
        date_from=parse_date(values.get("Dates.From")),
        date_to=parse_date(values.get("Dates.To"), end_of_day=True),
    )


def apply_request(
    query: Query,
    params: Mapping[str, str],
    definitions: Sequence[FieldDef] = (),
) -> Query:
    """
    Overlay request parameters onto ``query`` and return the new Query.

    Keys that are absent keep the base value. When any ``Filter.*`` key is
    present the filters are replaced as a whole, in index order; ``definitions``
    supply the field and kind of filter ``i`` when the request omits them.
    """
    changes: Dict[str, object] = {}
    if "Search" in params:
        changes["search"] = params["Search"]
    if "Order" in params:
        changes["order"] = params["Order"]
    if "Limit" in params:
        limit = parse_int(params["Limit"], query.limit)
        changes["limit"] = limit if limit > 0 else query.limit
    if "Offset" in params:
        changes["offset"] = parse_int(params["Offset"], query.offset)

    groups = _filter_groups(params)
    if groups:
        built = (_build_filter(index, values, definitions) for index, values in groups.items())
        changes["filters"] = tuple(flt for flt in built if flt is not None)

    return query.replace(**changes)


def to_params(query: Query) -> Dict[str, str]:
    """Render ``query`` as request parameters ``apply_request`` understands."""
    params: Dict[str, str] = {
        "Search": query.search,
        "Order": query.order,
        "Limit": str(query.limit),
        "Offset": str(query.offset),
    }
    for index, flt in enumerate(query.filters):
        prefix = f"{_FILTER_PREFIX}{index}."
        params[prefix + "Field"] = flt.field
        params[prefix + "As"] = flt.kind
        if isinstance(flt, BoolFilter):
            params[prefix + "Bool"] = "true" if flt.value else "false"
        elif isinstance(flt, SelectFilter):
            params[prefix + "Value"] = flt.value
        else:
            params[prefix + "Dates.From"] = flt.date_from.isoformat() if flt.date_from else ""
            params[prefix + "Dates.To"] = flt.date_to.isoformat() if flt.date_to else ""
    return params


def parse_query(payload: Mapping[str, object]) -> Query:
    """
    Validate a JSON-like mapping into a Query.

    Raises
    ------
    InvalidQueryError
        If the payload has unknown filter kinds or values of the wrong type.
    """
    try:
        return Query.model_validate(dict(payload))
    except ValidationError as exc:
        raise InvalidQueryError(f"invalid query: {exc.error_count()} error(s)\n{exc}") from exc


__all__ = [
    "apply_request",
    "parse_bool",
    "parse_date",
    "parse_int",
    "parse_query",
    "to_params",
]
