from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Iterator

import pytest
from typer.testing import CliRunner

from collate import main as cli
from collate.domain.query import Query
from collate.errors import DataAccessError

runner = CliRunner()
PAGE_LIMIT = 5
DEMO_ROWS = 100


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep log lines out of captured stdout and restore root handlers afterwards."""
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    monkeypatch.setenv("LOG_JSON", "false")
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _failing_loader(query: Query):
    raise DataAccessError("database unreachable")


def test_info_prints_effective_settings() -> None:
    result = runner.invoke(cli.app, ["info"])
    assert result.exit_code == 0
    assert "table=users" in result.stdout
    assert "limit=10" in result.stdout


def test_query_json_output() -> None:
    result = runner.invoke(
        cli.app,
        ["query", "--json", "--limit", str(PAGE_LIMIT), "--order", "name asc", "--search", "josé"],
    )
    assert result.exit_code == 0, result.stdout
    payload = json.loads(result.stdout)
    assert payload["total"] == DEMO_ROWS
    assert payload["error"] is None
    assert len(payload["data"]) <= PAGE_LIMIT
    assert payload["query"]["search"] == "josé"
    assert payload["query"]["order"] == "name asc"


def test_query_filters_map_to_request_filters() -> None:
    result = runner.invoke(
        cli.app,
        ["query", "--json", "--active", "--role", "ADMIN", "--created-from", "2024-06-01"],
    )
    assert result.exit_code == 0, result.stdout
    payload = json.loads(result.stdout)
    kinds = [flt["kind"] for flt in payload["query"]["filters"]]
    assert kinds == ["bool", "dates", "select"]
    for row in payload["data"]:
        assert row["active"] is True
        assert row["role"] == "admin"
        assert row["created_at"] >= "2024-06-01"


def test_query_renders_table_by_default() -> None:
    result = runner.invoke(cli.app, ["query", "--limit", "3"])
    assert result.exit_code == 0
    assert "Page 1/" in result.stdout


def test_query_exits_non_zero_when_load_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "demo_loader", lambda: _failing_loader)
    result = runner.invoke(cli.app, ["query"])
    assert result.exit_code == 1
    assert "database unreachable" in result.stdout


def test_unknown_source_is_a_usage_error() -> None:
    result = runner.invoke(cli.app, ["query", "--source", "mongo"])
    assert result.exit_code == 2


def test_export_writes_csv(tmp_path: Path) -> None:
    destination = tmp_path / "users.csv"
    result = runner.invoke(cli.app, ["export", "--output", str(destination), "--role", "guest"])
    assert result.exit_code == 0
    assert "Exported" in result.stdout
    with destination.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert rows
    assert {row["Role"] for row in rows} == {"guest"}


def test_export_without_matches(tmp_path: Path) -> None:
    destination = tmp_path / "users.csv"
    result = runner.invoke(
        cli.app, ["export", "--output", str(destination), "--search", "no such person"]
    )
    assert result.exit_code == 0
    assert "No data to export." in result.stdout
    assert not destination.exists()


def test_export_failure_exits_non_zero(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(cli, "demo_loader", lambda: _failing_loader)
    result = runner.invoke(cli.app, ["export", "--output", str(tmp_path / "x.csv")])
    assert result.exit_code == 1
