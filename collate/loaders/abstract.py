"""
Loader interfaces for collate.

A loader resolves a Query against one data source and returns a LoadResult, or
raises a LoadError. Concrete loaders (in-memory, Postgres, async Postgres)
implement the Loader protocol; a plain ``Callable[[Query], LoadResult]`` is
accepted anywhere a loader is, via ``as_load_function``.
"""

from __future__ import annotations

import abc
from typing import Any, Callable, Protocol, Union, runtime_checkable

from collate.domain.query import Query
from collate.domain.result import LoadResult

LoadFunction = Callable[[Query], LoadResult[Any]]


@runtime_checkable
class Loader(Protocol):
    """
    Common interface all synchronous loaders implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier used in logs.
    """

    name: str

    def load(self, query: Query) -> LoadResult[Any]:
        """
        Resolve ``query`` against the data source.

        Parameters
        ----------
        query : Query
            The normalized page request.

        Returns
        -------
        LoadResult
            Unconstrained total, filtered count and the requested page.

        Raises
        ------
        DataAccessError
            If the source could not be read.
        """
        ...


@runtime_checkable
class AsyncLoader(Protocol):
    """Asynchronous counterpart of Loader for event-loop callers."""

    name: str

    async def load(self, query: Query) -> LoadResult[Any]:
        ...


class AbstractLoader(abc.ABC):
    """
    Optional ABC helper for class-based implementations.

    Subclasses should set `name` and implement `load`.
    """

    name: str

    @abc.abstractmethod
    def load(self, query: Query) -> LoadResult[Any]:  # pragma: no cover - interface only
        """Run the query and return counts plus one page."""
        raise NotImplementedError


LoaderLike = Union[Loader, LoadFunction]


def as_load_function(loader: LoaderLike) -> LoadFunction:
    """Accept either a Loader object or a bare load callable."""
    load = getattr(loader, "load", None)
    if callable(load):
        return load
    if callable(loader):
        return loader
    raise TypeError(f"{loader!r} is neither a Loader nor a load callable")


def loader_name(loader: LoaderLike) -> str:
    return getattr(loader, "name", None) or getattr(loader, "__name__", type(loader).__name__)


__all__ = [
    "AbstractLoader",
    "AsyncLoader",
    "LoadFunction",
    "Loader",
    "LoaderLike",
    "as_load_function",
    "loader_name",
]
