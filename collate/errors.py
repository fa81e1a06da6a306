"""
Error taxonomy for loaders and the collate coordinator.

Loaders raise these instead of returning an empty result so callers can tell a
failed load apart from a legitimately empty page (``filtered == 0``).
"""

from __future__ import annotations


class CollateError(Exception):
    """Base class for every error raised by this package."""


class LoadError(CollateError):
    """A load could not produce a complete result."""


class DataAccessError(LoadError):
    """The backing store was unreachable or a statement failed."""


class LoadTimeoutError(DataAccessError):
    """A statement exceeded the loader's configured timeout."""


class InvalidQueryError(LoadError):
    """A query payload could not be turned into a valid Query."""


__all__ = [
    "CollateError",
    "LoadError",
    "DataAccessError",
    "LoadTimeoutError",
    "InvalidQueryError",
]
