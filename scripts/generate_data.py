"""
Demo data generation and loading script for collate.

Writes the deterministic demo users to CSV and optionally loads them into the
Postgres `users` table with COPY, so the `postgres` CLI source serves the same
rows as the in-memory `demo` source.
"""

from __future__ import annotations

import csv
import sys
import tempfile
import time
from pathlib import Path

import typer
from psycopg import sql

from collate.config import get_settings
from collate.demo import COLUMNS, generate_users
from collate.infrastructure.db_factory import build_dsn, get_sync_connection

app = typer.Typer(help="Generate the demo users and load them into Postgres (CSV + COPY).")


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _generate_rows_csv(csv_path: Path, rows: int, seed: int) -> None:
    users = generate_users(rows=rows, seed=seed)

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(COLUMNS)
        for user in users:
            writer.writerow(
                [
                    user.id,
                    user.name,
                    user.email,
                    user.city,
                    user.role,
                    "t" if user.active else "f",
                    user.created_at.isoformat(),
                ]
            )


def _copy_into_db(dsn: str, csv_path: Path, table: str | None = None) -> int:
    """COPY the CSV into the users table and return the number of rows loaded."""
    name = table or get_settings().users_table
    target = sql.Identifier(name)
    statement = sql.SQL("COPY {} ({}) FROM STDIN WITH (FORMAT csv, HEADER TRUE)").format(
        target,
        sql.SQL(", ").join(sql.Identifier(column) for column in COLUMNS),
    )
    with get_sync_connection(dsn) as conn:
        with conn.cursor() as cur:
            with cur.copy(statement) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            loaded = cur.rowcount
            # Explicit ids bypass the sequence; move it past them.
            cur.execute(
                sql.SQL(
                    "SELECT setval(pg_get_serial_sequence({}, 'id'), "
                    "COALESCE((SELECT max(id) FROM {}), 1))"
                ).format(sql.Literal(name), target)
            )
            conn.commit()
    return loaded


@app.command()
def main(
    rows: int = typer.Option(
        100,
        "--rows",
        "-r",
        help="Number of users to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate the demo users and optionally load them into Postgres using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="collate_csv_"))
        csv_path = tmpdir / "users.csv"

    typer.echo(f"Generating {rows:,} users -> {csv_path} (seed={seed})")
    _generate_rows_csv(csv_path, rows=rows, seed=seed)
    typer.echo(f"CSV generation completed in {time.perf_counter() - start:.2f}s")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    typer.echo("Loading CSV into Postgres via COPY...")
    loaded = _copy_into_db(_build_dsn(dsn), csv_path)
    typer.echo(f"Loaded {loaded:,} rows in {time.perf_counter() - load_start:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
