"""
Domain package for collate.

Exports the query descriptor, filter variants, result contracts and the demo
record model. Keep this package focused on data definitions and validation.
"""

from collate.domain.models import User
from collate.domain.query import (
    DEFAULT_LIMIT,
    BoolFilter,
    DateRangeFilter,
    FieldDef,
    Filter,
    OrderSpec,
    Query,
    SelectFilter,
    parse_order,
)
from collate.domain.result import CollateResult, LoadResult

__all__ = [
    "DEFAULT_LIMIT",
    "BoolFilter",
    "CollateResult",
    "DateRangeFilter",
    "FieldDef",
    "Filter",
    "LoadResult",
    "OrderSpec",
    "Query",
    "SelectFilter",
    "User",
    "parse_order",
]
