"""
Utilities package for collate.

Exports shared helpers for logging and search normalization.
Keep this package lightweight and free of loader-specific logic.
"""

from collate.utils.logging import configure_logging, get_logger
from collate.utils.text import fold_table, normalize_for_search

__all__ = [
    "configure_logging",
    "get_logger",
    "fold_table",
    "normalize_for_search",
]
