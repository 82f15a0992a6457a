"""Applies SQL migration files once each, tracked in ``schema_migrations``."""

from __future__ import annotations

import os
import sqlite3
from datetime import datetime

UP_MARKER = "-- +goose Up"
DOWN_MARKER = "-- +goose Down"


class MigrationError(RuntimeError):
    """A migration file could not be read, run or recorded."""


def ensure_tracking_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            filename TEXT PRIMARY KEY,
            applied_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    conn.commit()


def collect_sql_files(base_dir: str | os.PathLike) -> list[str]:
    """Return every ``.sql`` file under ``base_dir`` in lexical order."""
    base = os.fspath(base_dir)
    if not os.path.isdir(base):
        return []
    files = [
        os.path.join(root, name)
        for root, _dirs, names in os.walk(base)
        for name in names
        if os.path.splitext(name)[1] == ".sql"
    ]
    return sorted(files)


def extract_up_section(content: str) -> str:
    """Keep only the Up part of an annotated migration."""
    if UP_MARKER not in content:
        return content
    before_down = content.split(DOWN_MARKER)[0]
    pieces = before_down.split(UP_MARKER)
    return pieces[1] if len(pieces) > 1 else pieces[0]


def is_applied(conn: sqlite3.Connection, filename: str) -> bool:
    try:
        (count,) = conn.execute(
            "SELECT COUNT(*) FROM schema_migrations WHERE filename = ?", (filename,)
        ).fetchone()
    except sqlite3.Error as exc:
        raise MigrationError(f"check applied {filename}: {exc}") from exc
    return count > 0


def apply_migration_file(conn: sqlite3.Connection, filename: str) -> None:
    """Run one file and record it, all in one transaction."""
    try:
        with open(filename, encoding="utf-8") as handle:
            content = handle.read()
    except OSError as exc:
        raise MigrationError(f"read {filename}: {exc}") from exc

    script = extract_up_section(content)
    try:
        conn.executescript("BEGIN;\n" + script + "\n;")
    except sqlite3.Error as exc:
        conn.rollback()
        raise MigrationError(f"exec {filename}: {exc}") from exc
    try:
        conn.execute(
            "INSERT INTO schema_migrations (filename, applied_at) VALUES (?, ?)",
            (filename, datetime.now().isoformat(sep=" ")),
        )
    except sqlite3.Error as exc:
        conn.rollback()
        raise MigrationError(f"record {filename}: {exc}") from exc
    conn.commit()


def run_migrations(conn: sqlite3.Connection, base_dir: str | os.PathLike = "database_schema") -> list[str]:
    """Apply every pending migration; return the files applied now."""
    ensure_tracking_table(conn)
    applied = []
    for filename in collect_sql_files(base_dir):
        if is_applied(conn, filename):
            continue
        apply_migration_file(conn, filename)
        applied.append(filename)
    return applied