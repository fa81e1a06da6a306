"""
Pytest configuration for collate.

Provides fixtures for:
- Settings override and cache isolation
- An in-memory loader over the deterministic demo users
- Database connection management for integration tests
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import psycopg
import pytest

from collate.config import Settings, get_settings
from collate.demo import demo_loader
from collate.domain.models import User
from collate.loaders.memory import InMemoryLoader

DEMO_ROWS = 100
DEMO_SEED = 42


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Drop cached settings so monkeypatched environment variables take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "collate"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture()
def memory_loader() -> InMemoryLoader[User]:
    return demo_loader(rows=DEMO_ROWS, seed=DEMO_SEED)


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the users table exists, creating it from db/init.sql if necessary.
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def seeded_users(
    db_connection: psycopg.Connection,
    db_schema_initialized: bool,
    test_dsn: str,
    tmp_path: Path,
) -> Generator[int, None, None]:
    """
    Load the demo users into an empty users table.

    Returns the number of rows seeded.
    """
    from scripts.generate_data import _copy_into_db, _generate_rows_csv

    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.users RESTART IDENTITY;")
    db_connection.commit()

    csv_path = tmp_path / "users.csv"
    _generate_rows_csv(csv_path, rows=DEMO_ROWS, seed=DEMO_SEED)
    _copy_into_db(test_dsn, csv_path, table="users")

    with db_connection.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM public.users;")
        count = cur.fetchone()[0]
    db_connection.commit()

    yield count

    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.users RESTART IDENTITY;")
    db_connection.commit()
