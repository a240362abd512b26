# src/vsched/storage/migrations.py
from __future__ import annotations

import re
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from vsched.logging import get_logger

_LOG = get_logger(__name__)


_MIGRATION_RE = re.compile(r"^(?P<version>\d+)_.*\.sql$")

# SQL files ship inside the package so migrations work regardless of cwd.
DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parent / "sql"


@dataclass(frozen=True)
class Migration:
    version: int
    filename: str
    path: Path


def apply_migrations(conn: sqlite3.Connection, migrations_dir: Optional[Path] = None) -> int:
    """
    Applies SQL migrations in ascending numeric order and returns how many ran.

    Applied versions are recorded in schema_migrations, so calling this on
    every startup is safe.

    Expected migration filenames:
      001_schedules.sql
      002_ledger.sql
      ...
    """
    migrations_dir = (migrations_dir or DEFAULT_MIGRATIONS_DIR).resolve()
    if not migrations_dir.exists():
        raise FileNotFoundError(f"Migrations dir not found: {migrations_dir}")

    _ensure_migrations_table(conn)

    applied = _get_applied_versions(conn)
    to_apply = [m for m in _load_migrations(migrations_dir) if m.version not in applied]
    if not to_apply:
        _LOG.debug("No pending migrations.")
        return 0

    _LOG.info("Applying %d migration(s)...", len(to_apply))
    for m in to_apply:
        _LOG.info("Applying migration %03d (%s)", m.version, m.filename)
        conn.executescript(m.path.read_text(encoding="utf-8"))
        conn.execute(
            "INSERT INTO schema_migrations(version, filename, applied_at) VALUES (?, ?, strftime('%s','now')*1000);",
            (m.version, m.filename),
        )
    return len(to_apply)


def _ensure_migrations_table(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations(
          version INTEGER PRIMARY KEY,
          filename TEXT NOT NULL,
          applied_at INTEGER NOT NULL
        );
        """
    )


def _get_applied_versions(conn: sqlite3.Connection) -> set[int]:
    rows = conn.execute("SELECT version FROM schema_migrations ORDER BY version;").fetchall()
    return {int(r["version"]) for r in rows}


def _load_migrations(migrations_dir: Path) -> list[Migration]:
    migrations: list[Migration] = []
    for path in migrations_dir.glob("*.sql"):
        m = _MIGRATION_RE.match(path.name)
        if not m:
            continue
        migrations.append(Migration(version=int(m.group("version")), filename=path.name, path=path))

    migrations.sort(key=lambda x: x.version)
    return migrations
