from __future__ import annotations

import pytest

from collate.domain.query import parse_order

ALLOWED = {"name": "name", "createdat": "created_at", "created_at": "created_at"}
DEFAULT_FIELD = "created_at"


@pytest.mark.parametrize(
    ("token", "field", "direction"),
    [
        ("name asc", "name", "asc"),
        ("NAME ASC", "name", "asc"),
        ("name Asc", "name", "asc"),
        ("name desc", "name", "desc"),
        ("name", "name", "desc"),
        ("name sideways", "name", "desc"),
        ("createdat asc", "created_at", "asc"),
    ],
)
def test_known_field_direction(token: str, field: str, direction: str) -> None:
    spec = parse_order(token, ALLOWED, DEFAULT_FIELD)
    assert spec.field == field
    assert spec.direction == direction


@pytest.mark.parametrize("token", ["", None, "   ", "bogus", "bogus asc", "password desc"])
def test_absent_or_unknown_field_falls_back_to_default_descending(token) -> None:
    spec = parse_order(token, ALLOWED, DEFAULT_FIELD)
    assert spec.field == DEFAULT_FIELD
    assert spec.direction == "desc"
    assert spec.descending
