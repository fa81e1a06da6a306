"""
collate - load pages of filtered, searched, sorted records from any source.

This package defines the contract between a table UI and its data source:

- Query: search text, typed filters, order token, limit and offset
- Loader: anything that turns a Query into a LoadResult (or raises LoadError)
- normalize_for_search: the accent/case fold search predicates share

It ships reference loaders for in-memory lists and PostgreSQL (sync and
async), a Collate coordinator that parses request parameters and reports
failures, CSV export, and a small CLI over a demo dataset.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from collate.collator import Collate
from collate.config import Settings, get_settings
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
from collate.errors import (
    CollateError,
    DataAccessError,
    InvalidQueryError,
    LoadError,
    LoadTimeoutError,
)
from collate.loaders import (
    AbstractLoader,
    AsyncLoader,
    AsyncPostgresLoader,
    InMemoryLoader,
    Loader,
    PostgresLoader,
    RetryingLoader,
    TableSpec,
)
from collate.request import apply_request, parse_query, to_params
from collate.utils.logging import configure_logging, get_logger
from collate.utils.text import normalize_for_search

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Query descriptor
    "DEFAULT_LIMIT",
    "BoolFilter",
    "DateRangeFilter",
    "FieldDef",
    "Filter",
    "OrderSpec",
    "Query",
    "SelectFilter",
    "parse_order",
    # Results
    "CollateResult",
    "LoadResult",
    # Errors
    "CollateError",
    "DataAccessError",
    "InvalidQueryError",
    "LoadError",
    "LoadTimeoutError",
    # Loaders
    "AbstractLoader",
    "AsyncLoader",
    "AsyncPostgresLoader",
    "InMemoryLoader",
    "Loader",
    "PostgresLoader",
    "RetryingLoader",
    "TableSpec",
    # Coordination
    "Collate",
    "apply_request",
    "parse_query",
    "to_params",
    # Utilities
    "configure_logging",
    "get_logger",
    "normalize_for_search",
]
