"""
Loaders package for collate.

Re-exports the loader interfaces and the concrete loaders so downstream code
can import from `collate.loaders` directly.
"""

from collate.loaders.abstract import (
    AbstractLoader,
    AsyncLoader,
    Loader,
    LoaderLike,
    as_load_function,
)
from collate.loaders.async_postgres import AsyncPostgresLoader
from collate.loaders.memory import InMemoryLoader
from collate.loaders.postgres import PostgresLoader
from collate.loaders.retry import RetryingLoader
from collate.loaders.sql import TableSpec, build_statements

__all__ = [
    # Abstracts
    "AbstractLoader",
    "AsyncLoader",
    "Loader",
    "LoaderLike",
    "as_load_function",
    # Concrete loaders
    "AsyncPostgresLoader",
    "InMemoryLoader",
    "PostgresLoader",
    "RetryingLoader",
    # SQL composition
    "TableSpec",
    "build_statements",
]
