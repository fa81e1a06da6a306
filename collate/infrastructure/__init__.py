"""
Infrastructure package for collate.

Centralizes database connectivity concerns (DSN, pools, exclusive connections,
statement timeouts). Keep this layer focused on I/O and resource management,
decoupled from query semantics.
"""

from collate.infrastructure.db_factory import (
    ExclusiveConnection,
    PoolManager,
    apply_statement_timeout,
    apply_statement_timeout_async,
    build_dsn,
    get_sync_connection,
)

__all__ = [
    "ExclusiveConnection",
    "PoolManager",
    "apply_statement_timeout",
    "apply_statement_timeout_async",
    "build_dsn",
    "get_sync_connection",
]
