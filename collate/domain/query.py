"""
Query descriptor, filter variants and order parsing.

A ``Query`` describes one requested page: free-text search, typed filters, an
order token and limit/offset. Filters are a closed union discriminated on
``kind`` so each variant only carries the payload that is meaningful for it.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

DEFAULT_LIMIT = 10

FilterKind = Literal["bool", "select", "dates"]
Direction = Literal["asc", "desc"]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BoolFilter(BaseModel):
    """
    Opt-in toggle such as "show active only".

    ``value=False`` is not a constraint: it never matches only false rows.
    """

    kind: Literal["bool"] = "bool"
    field: str
    value: bool = False

    model_config = {"frozen": True}

    @property
    def applies(self) -> bool:
        return self.value


class SelectFilter(BaseModel):
    """Equality on a single option; an empty value selects everything."""

    kind: Literal["select"] = "select"
    field: str
    value: str = ""

    model_config = {"frozen": True}

    @field_validator("value", mode="before")
    @classmethod
    def _strip(cls, value: object) -> str:
        return "" if value is None else str(value).strip()

    @property
    def applies(self) -> bool:
        return bool(self.value)


class DateRangeFilter(BaseModel):
    """
    Inclusive range over an instant; each bound is independent.

    A bound at or before the Unix epoch is the "unset" sentinel.
    """

    kind: Literal["dates"] = "dates"
    field: str
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    model_config = {"frozen": True}

    @staticmethod
    def _effective(bound: Optional[datetime]) -> Optional[datetime]:
        if bound is None:
            return None
        bound = as_utc(bound)
        return bound if bound > _EPOCH else None

    @property
    def lower(self) -> Optional[datetime]:
        return self._effective(self.date_from)

    @property
    def upper(self) -> Optional[datetime]:
        return self._effective(self.date_to)

    @property
    def applies(self) -> bool:
        return self.lower is not None or self.upper is not None


Filter = Annotated[
    Union[BoolFilter, SelectFilter, DateRangeFilter],
    Field(discriminator="kind"),
]


class Query(BaseModel):
    """
    One request for a page of records.

    Values are normalized on construction: search is trimmed, a non-positive
    limit becomes ``DEFAULT_LIMIT`` and a negative offset becomes 0.
    """

    search: str = ""
    filters: Tuple[Filter, ...] = ()
    order: str = ""
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    model_config = {"frozen": True}

    @field_validator("search", "order", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("limit", mode="before")
    @classmethod
    def _default_limit(cls, value: object) -> object:
        return DEFAULT_LIMIT if value is None else value

    @field_validator("limit")
    @classmethod
    def _positive_limit(cls, value: int) -> int:
        return value if value > 0 else DEFAULT_LIMIT

    @field_validator("offset", mode="before")
    @classmethod
    def _default_offset(cls, value: object) -> object:
        return 0 if value is None else value

    @field_validator("offset")
    @classmethod
    def _non_negative_offset(cls, value: int) -> int:
        return value if value > 0 else 0

    def active_filters(self) -> Tuple[Union[BoolFilter, SelectFilter, DateRangeFilter], ...]:
        """Filters that actually constrain results."""
        return tuple(f for f in self.filters if f.applies)

    def replace(self, **changes: Any) -> "Query":
        """Return a re-validated copy with ``changes`` applied."""
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(changes)
        return type(self)(**values)


class OrderSpec(BaseModel):
    field: str
    direction: Direction = "desc"

    model_config = {"frozen": True}

    @property
    def descending(self) -> bool:
        return self.direction == "desc"


def parse_order(order: Optional[str], allowed: Mapping[str, str], default_field: str) -> OrderSpec:
    """
    Resolve an ``"<field> [asc|desc]"`` token against the sortable fields.

    ``allowed`` maps lower-case order tokens to source field names. An absent or
    unknown field falls back to ``default_field`` descending, whatever direction
    was asked for; this hides stale or mistyped order tokens instead of failing.
    Only ``asc`` (any case) selects ascending, anything else is descending.
    """
    parts = (order or "").split()
    if not parts:
        return OrderSpec(field=default_field, direction="desc")
    field = allowed.get(parts[0].lower())
    if field is None:
        return OrderSpec(field=default_field, direction="desc")
    direction: Direction = "asc" if len(parts) > 1 and parts[1].lower() == "asc" else "desc"
    return OrderSpec(field=field, direction=direction)


class FieldDef(BaseModel):
    """
    A column exposed to the table: what it is called, and how it filters.

    ``kind`` is set only for filterable fields; ``options`` lists the choices of
    a select filter.
    """

    field: str
    label: str = ""
    kind: Optional[FilterKind] = None
    options: Tuple[str, ...] = ()

    model_config = {"frozen": True}

    @property
    def title(self) -> str:
        return self.label or self.field


__all__ = [
    "DEFAULT_LIMIT",
    "BoolFilter",
    "DateRangeFilter",
    "Direction",
    "FieldDef",
    "Filter",
    "FilterKind",
    "OrderSpec",
    "Query",
    "SelectFilter",
    "as_utc",
    "parse_order",
]
