# src/vsched/api/deps.py
from __future__ import annotations

import sqlite3
from typing import Annotated, Generator

from fastapi import Depends, Header, Request

from vsched.config import Settings
from vsched.engine import AssetLocks, Clock, VestingService
from vsched.storage import LedgerRepo, ScheduleRepo, SQLiteDB


def get_settings(request: Request) -> Settings:
    """
    Per-request access to settings stored on app.state during startup.
    """
    return request.app.state.settings  # type: ignore[attr-defined]


def get_db(request: Request) -> SQLiteDB:
    return request.app.state.db  # type: ignore[attr-defined]


def get_clock(request: Request) -> Clock:
    return request.app.state.clock  # type: ignore[attr-defined]


def get_locks(request: Request) -> AssetLocks:
    return request.app.state.locks  # type: ignore[attr-defined]


def get_caller(x_caller_id: Annotated[str, Header(min_length=1, max_length=256)]) -> str:
    """
    Authenticated caller address, taken from the X-Caller-Id header.

    Authentication itself happens upstream (gateway / signature check); the
    service only consumes the resulting identity.
    """
    return x_caller_id


def get_conn(
    db: SQLiteDB = Depends(get_db),
) -> Generator[sqlite3.Connection, None, None]:
    """
    Provides a per-request SQLite connection.
    """
    conn = db.connect()
    try:
        yield conn
    finally:
        conn.close()


def get_ledger(
    conn: sqlite3.Connection = Depends(get_conn),
) -> LedgerRepo:
    return LedgerRepo(conn)


def get_service(
    conn: sqlite3.Connection = Depends(get_conn),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
    locks: AssetLocks = Depends(get_locks),
) -> VestingService:
    """
    Provides a VestingService whose repo and ledger share the request connection.
    """
    return VestingService(
        ScheduleRepo(conn),
        LedgerRepo(conn),
        locks=locks,
        custody_address=settings.custody_address,
        clock=clock,
    )
