# src/vsched/storage/db.py
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator


@dataclass(frozen=True)
class SQLiteDB:
    """
    SQLite connection factory.

    Notes:
    - One connection per request / thread; connections are never used concurrently.
    - Pragmas are applied on each connection.
    - WAL mode lets readers see a stable snapshot while a release is being written.
    """
    db_path: Path
    timeout_s: float = 5.0

    def connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.timeout_s,
            isolation_level=None,          # we manage transactions manually (BEGIN/COMMIT)
            check_same_thread=False,       # FastAPI may hand a request connection across threadpool workers
        )
        conn.row_factory = sqlite3.Row
        self._apply_pragmas(conn)
        return conn

    def _apply_pragmas(self, conn: sqlite3.Connection) -> None:
        cur = conn.cursor()
        cur.execute("PRAGMA journal_mode=WAL;")
        cur.execute("PRAGMA foreign_keys=ON;")
        cur.execute(f"PRAGMA busy_timeout={int(self.timeout_s * 1000)};")
        cur.execute("PRAGMA synchronous=NORMAL;")
        cur.close()


def begin_immediate(conn: sqlite3.Connection) -> None:
    """
    Begins a transaction that acquires a RESERVED lock immediately.
    Concurrent writers block here, so a release reads and writes its cursor
    without interleaving with another release.
    """
    conn.execute("BEGIN IMMEDIATE;")


def begin_deferred(conn: sqlite3.Connection) -> None:
    """
    Begins a transaction in DEFERRED mode. Used for multi-statement reads so
    they all observe the same snapshot.
    """
    conn.execute("BEGIN;")


def commit(conn: sqlite3.Connection) -> None:
    conn.execute("COMMIT;")


def rollback(conn: sqlite3.Connection) -> None:
    conn.execute("ROLLBACK;")


@contextmanager
def atomic(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Runs the block inside a write transaction.

    If a transaction is already open on the connection the block joins it and
    the outer owner decides whether to commit or roll back.
    """
    if conn.in_transaction:
        yield conn
        return

    begin_immediate(conn)
    try:
        yield conn
    except Exception:
        rollback(conn)
        raise
    commit(conn)


@contextmanager
def snapshot(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Runs a group of reads against one consistent snapshot. Nothing is written,
    so the transaction is always rolled back.
    """
    begin_deferred(conn)
    try:
        yield conn
    finally:
        rollback(conn)
