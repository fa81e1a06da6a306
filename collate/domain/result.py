"""
Result contracts returned by loaders and by the collate coordinator.
"""
from __future__ import annotations

import math
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, model_validator

from collate.domain.query import Query

RecordT = TypeVar("RecordT")


class LoadResult(BaseModel, Generic[RecordT]):
    """
    Counts plus one page of records, as produced by a single load.

    ``total`` ignores search and filters, ``filtered`` ignores pagination and
    ``data`` is the requested page of the filtered, ordered set.
    """

    total: int = Field(0, ge=0)
    filtered: int = Field(0, ge=0)
    data: List[RecordT] = Field(default_factory=list)

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @model_validator(mode="after")
    def _filtered_within_total(self) -> "LoadResult[RecordT]":
        if self.filtered > self.total:
            raise ValueError(
                f"filtered count {self.filtered} exceeds total count {self.total}"
            )
        return self


class CollateResult(BaseModel):
    """
    What a renderer receives: the load result, the query behind it and the
    outcome of the load.

    ``error`` is set only when the load failed; a successful load with no
    matching rows has ``error=None`` and ``filtered == 0``.
    """

    query: Query
    total: int = 0
    filtered: int = 0
    data: List[Any] = Field(default_factory=list)
    error: Optional[str] = None
    duration_seconds: float = 0.0

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def pages(self) -> int:
        return math.ceil(self.filtered / self.query.limit)

    @property
    def page(self) -> int:
        return self.query.offset // self.query.limit + 1

    @property
    def has_more(self) -> bool:
        return self.query.offset + len(self.data) < self.filtered

    @property
    def first_row(self) -> int:
        """1-based position of the first row shown, 0 when the page is empty."""
        return self.query.offset + 1 if self.data else 0

    @property
    def last_row(self) -> int:
        return self.query.offset + len(self.data)


__all__ = ["CollateResult", "LoadResult", "RecordT"]
