from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest

from collate.domain.models import User
from collate.domain.query import BoolFilter, DateRangeFilter, Query, SelectFilter
from collate.errors import DataAccessError
from collate.loaders.abstract import Loader
from collate.loaders.memory import InMemoryLoader

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
BASE = datetime(2024, 6, 1, tzinfo=timezone.utc)
MATCHING_ROWS = 15


def _people() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "name": "Óscar", "email": "oscar@x.com", "role": "admin", "active": True,
         "created_at": BASE},
        {"id": 2, "name": "ana", "email": "jose@x.com", "role": "user", "active": False,
         "created_at": BASE - timedelta(days=1)},
        {"id": 3, "name": "Bruno", "email": "bruno@x.com", "role": "User", "active": True,
         "created_at": BASE - timedelta(days=2)},
        {"id": 4, "name": "Álvaro", "email": "alvaro@x.com", "role": "guest", "active": True,
         "created_at": BASE - timedelta(days=3)},
        {"id": 5, "name": None, "email": "nobody@x.com", "role": "guest", "active": False,
         "created_at": BASE - timedelta(days=4)},
    ]


def _loader(records) -> InMemoryLoader:
    return InMemoryLoader(
        records,
        search_fields=("name", "email"),
        sort_fields={"name": "name", "email": "email", "createdat": "created_at"},
        filter_fields={"active": "active", "role": "role", "created_at": "created_at"},
        default_sort="created_at",
    )


def _ids(result) -> List[int]:
    return [row["id"] for row in result.data]


def test_memory_loader_satisfies_loader_protocol() -> None:
    assert isinstance(_loader([]), Loader)


def test_empty_store() -> None:
    result = _loader([]).load(Query())
    assert (result.total, result.filtered, result.data) == (0, 0, [])


def test_accent_insensitive_search_matches_stored_value() -> None:
    result = _loader(_people()).load(Query(search="José"))
    assert _ids(result) == [2]
    assert result.total == 5
    assert result.filtered == 1


def test_search_folds_stored_accents() -> None:
    result = _loader(_people()).load(Query(search="ALVARO"))
    assert _ids(result) == [4]


def test_search_skips_missing_values() -> None:
    result = _loader(_people()).load(Query(search="nobody"))
    assert _ids(result) == [5]


def test_search_term_must_fit_inside_one_field() -> None:
    rows = [{"id": 1, "name": "Ana", "email": "x@y.com", "created_at": BASE}]
    loader = _loader(rows)
    assert loader.load(Query(search="ana x@y")).filtered == 0
    assert loader.load(Query(search="x@y")).filtered == 1


def test_offset_past_end_returns_empty_page_with_counts() -> None:
    rows = [
        {"id": i, "name": f"n{i}", "email": "", "created_at": BASE} for i in range(MATCHING_ROWS)
    ]
    result = _loader(rows).load(Query(limit=10, offset=20))
    assert result.data == []
    assert result.filtered == MATCHING_ROWS
    assert result.total == MATCHING_ROWS


def test_order_name_ascending_vs_unknown_token() -> None:
    loader = _loader(_people())
    by_name = loader.load(Query(order="name asc"))
    # Accent- and case-insensitive, missing names last.
    assert _ids(by_name) == [4, 2, 3, 1, 5]

    fallback = loader.load(Query(order="bogus asc"))
    assert _ids(fallback) == [1, 2, 3, 4, 5]


def test_descending_is_default_direction() -> None:
    result = _loader(_people()).load(Query(order="createdat"))
    assert _ids(result) == [1, 2, 3, 4, 5]
    ascending = _loader(_people()).load(Query(order="createdat ASC"))
    assert _ids(ascending) == [5, 4, 3, 2, 1]


def test_false_bool_filter_equals_no_filter() -> None:
    loader = _loader(_people())
    unfiltered = loader.load(Query())
    with_false = loader.load(Query(filters=(BoolFilter(field="active", value=False),)))
    assert with_false == unfiltered


def test_true_bool_filter_keeps_truthy_rows() -> None:
    result = _loader(_people()).load(Query(filters=(BoolFilter(field="active", value=True),)))
    assert _ids(result) == [1, 3, 4]
    assert result.total == 5


def test_empty_select_filter_does_not_constrain() -> None:
    loader = _loader(_people())
    result = loader.load(Query(filters=(SelectFilter(field="role", value=""),)))
    assert result == loader.load(Query())


def test_select_filter_is_case_insensitive() -> None:
    result = _loader(_people()).load(Query(filters=(SelectFilter(field="role", value="USER"),)))
    assert _ids(result) == [2, 3]


def test_date_range_bounds_are_inclusive_and_independent() -> None:
    loader = _loader(_people())
    both = DateRangeFilter(
        field="created_at", date_from=BASE - timedelta(days=3), date_to=BASE - timedelta(days=1)
    )
    assert _ids(loader.load(Query(filters=(both,)))) == [2, 3, 4]

    epoch_lower = DateRangeFilter(
        field="created_at", date_from=EPOCH, date_to=BASE - timedelta(days=3)
    )
    assert _ids(loader.load(Query(filters=(epoch_lower,)))) == [4, 5]

    epoch_upper = DateRangeFilter(
        field="created_at", date_from=BASE - timedelta(days=1), date_to=EPOCH
    )
    assert _ids(loader.load(Query(filters=(epoch_upper,)))) == [1, 2]


def test_filters_combine_with_search() -> None:
    query = Query(
        search="x.com",
        filters=(
            BoolFilter(field="active", value=True),
            SelectFilter(field="role", value="guest"),
        ),
    )
    assert _ids(_loader(_people()).load(query)) == [4]


def test_unknown_filter_field_is_skipped_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    loader = _loader(_people())
    with caplog.at_level(logging.WARNING, logger="collate.loaders.memory"):
        result = loader.load(Query(filters=(SelectFilter(field="password", value="x"),)))
    assert result.filtered == 5
    assert "Skipping filter on unknown field" in caplog.text


def test_pagination_is_stable_across_calls() -> None:
    rows = [{"id": i, "name": "same", "email": "", "created_at": BASE} for i in range(30)]
    loader = _loader(rows)
    query = Query(order="name asc", limit=7, offset=7)
    first = loader.load(query)
    second = loader.load(query)
    assert _ids(first) == _ids(second) == list(range(7, 14))


def test_counts_and_page_bounds_hold_for_demo_data(memory_loader: InMemoryLoader[User]) -> None:
    queries = [
        Query(),
        Query(search="garcia", limit=5),
        Query(filters=(BoolFilter(field="active", value=True),), offset=40, limit=25),
        Query(search="zzz-no-match"),
        Query(order="name asc", limit=200),
    ]
    for query in queries:
        result = memory_loader.load(query)
        assert result.filtered <= result.total == 100
        assert len(result.data) <= query.limit


def test_replace_swaps_snapshot() -> None:
    loader = _loader(_people())
    loader.replace([])
    assert loader.load(Query()).total == 0


def test_unorderable_values_raise_data_access_error() -> None:
    rows = [
        {"id": 1, "name": "Ana", "email": "", "created_at": BASE},
        {"id": 2, "name": 7, "email": "", "created_at": BASE},
    ]
    with pytest.raises(DataAccessError, match="'name' cannot be ordered"):
        _loader(rows).load(Query(order="name asc"))
