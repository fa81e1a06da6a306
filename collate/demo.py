"""
Deterministic demo dataset of users.

Names and cities carry diacritics on purpose so accent-insensitive search can
be tried from the CLI. The same rows feed the in-memory loader and, through
`scripts/generate_data.py`, the Postgres `users` table.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from collate.config import get_settings
from collate.domain.models import User
from collate.domain.query import FieldDef
from collate.loaders.memory import InMemoryLoader
from collate.loaders.sql import TableSpec
from collate.utils.text import normalize_for_search

DEMO_ANCHOR = datetime(2025, 1, 1, tzinfo=timezone.utc)

FIRST_NAMES = (
    "José", "María", "Zoë", "Ángela", "Łukasz", "Søren", "François", "Chloé",
    "Jiří", "Ingrid", "Noah", "Emma", "Luis", "Núria", "Óscar", "Ana",
)
LAST_NAMES = (
    "García", "Müller", "Dvořák", "Nowak", "Smith", "Pérez", "Hansen", "Rossi",
    "Côté", "Ibáñez",
)
CITIES = (
    "Bogotá", "Kraków", "São Paulo", "Zürich", "Málaga", "Praha", "Oslo",
    "Montréal", "Lisboa", "Berlin",
)
ROLES = ("admin", "manager", "user", "guest")

COLUMNS: Tuple[str, ...] = ("id", "name", "email", "city", "role", "active", "created_at")
SEARCH_FIELDS: Tuple[str, ...] = ("name", "email", "city")
SORT_FIELDS: Dict[str, str] = {
    "name": "name",
    "email": "email",
    "city": "city",
    "createdat": "created_at",
    "created_at": "created_at",
}
FILTER_FIELDS: Dict[str, str] = {
    "active": "active",
    "role": "role",
    "created_at": "created_at",
}
DEFAULT_SORT = "created_at"

FILTER_DEFS: Tuple[FieldDef, ...] = (
    FieldDef(field="active", label="Active", kind="bool"),
    FieldDef(field="created_at", label="Created", kind="dates"),
    FieldDef(field="role", label="Role", kind="select", options=ROLES),
)
SORT_DEFS: Tuple[FieldDef, ...] = (
    FieldDef(field="name", label="Name"),
    FieldDef(field="email", label="Email"),
    FieldDef(field="city", label="City"),
    FieldDef(field="created_at", label="Created"),
)
EXPORT_DEFS: Tuple[FieldDef, ...] = (
    FieldDef(field="id", label="#"),
    FieldDef(field="name", label="Name"),
    FieldDef(field="email", label="Email"),
    FieldDef(field="city", label="City"),
    FieldDef(field="role", label="Role"),
    FieldDef(field="active", label="Active"),
    FieldDef(field="created_at", label="Created"),
)


def generate_users(
    rows: int = 100, seed: int = 42, anchor: datetime = DEMO_ANCHOR
) -> List[User]:
    """Build ``rows`` users spread over the year before ``anchor``."""
    rng = random.Random(seed)
    users: List[User] = []
    for index in range(1, rows + 1):
        first = rng.choice(FIRST_NAMES)
        last = rng.choice(LAST_NAMES)
        local_part = f"{normalize_for_search(first)}.{normalize_for_search(last)}{index}"
        users.append(
            User(
                id=index,
                name=f"{first} {last}",
                email=f"{local_part}@example.com",
                city=rng.choice(CITIES),
                role=rng.choice(ROLES),
                active=rng.random() < 0.7,
                created_at=anchor
                - timedelta(days=rng.randint(0, 364), minutes=rng.randint(0, 1439)),
            )
        )
    return users


def users_table(table: Optional[str] = None) -> TableSpec:
    """TableSpec of the `users` table created by `db/init.sql`."""
    return TableSpec(
        table=table or get_settings().users_table,
        key="id",
        columns=COLUMNS,
        search_columns=SEARCH_FIELDS,
        sort_columns=SORT_FIELDS,
        filter_columns=FILTER_FIELDS,
        default_sort=DEFAULT_SORT,
    )


def demo_loader(rows: int = 100, seed: int = 42) -> InMemoryLoader[User]:
    return InMemoryLoader(
        generate_users(rows=rows, seed=seed),
        search_fields=SEARCH_FIELDS,
        sort_fields=SORT_FIELDS,
        filter_fields=FILTER_FIELDS,
        default_sort=DEFAULT_SORT,
    )


__all__ = [
    "COLUMNS",
    "DEFAULT_SORT",
    "DEMO_ANCHOR",
    "EXPORT_DEFS",
    "FILTER_DEFS",
    "FILTER_FIELDS",
    "ROLES",
    "SEARCH_FIELDS",
    "SORT_DEFS",
    "SORT_FIELDS",
    "demo_loader",
    "generate_users",
    "users_table",
]
