"""
Opt-in retries around a loader.

Loaders never retry on their own. Callers that want transient failures retried
wrap the loader here; only DataAccessError is retried, every other error
propagates on the first attempt.
"""

from __future__ import annotations

import logging
from typing import Any

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from collate.domain.query import Query
from collate.domain.result import LoadResult
from collate.errors import DataAccessError
from collate.loaders.abstract import LoaderLike, as_load_function, loader_name
from collate.utils.logging import get_logger

log = get_logger(__name__)


class RetryingLoader:
    """Retry a wrapped loader with exponential backoff."""

    def __init__(
        self,
        loader: LoaderLike,
        attempts: int = 3,
        wait_min: float = 0.5,
        wait_max: float = 5.0,
    ) -> None:
        self._load = as_load_function(loader)
        self.name = f"retrying:{loader_name(loader)}"
        self.attempts = attempts
        self.wait_min = wait_min
        self.wait_max = wait_max

    def load(self, query: Query) -> LoadResult[Any]:
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.wait_min, min=self.wait_min, max=self.wait_max),
            retry=retry_if_exception_type(DataAccessError),
            before_sleep=before_sleep_log(log, logging.WARNING),
            reraise=True,
        )
        return retrying(self._load, query)


__all__ = ["RetryingLoader"]
