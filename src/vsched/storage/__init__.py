# src/vsched/storage/__init__.py
"""
Storage layer for vsched (SQLite).

- db: connection factory, pragmas, transaction helpers
- migrations: lightweight SQL migrations runner
- repo: schedules, round cursors, release log
- ledger: balances and allowances for the custody ledger
"""

from .db import SQLiteDB, atomic, snapshot
from .ledger import LedgerRepo
from .migrations import apply_migrations
from .repo import ScheduleRepo

__all__ = ["SQLiteDB", "atomic", "snapshot", "apply_migrations", "ScheduleRepo", "LedgerRepo"]
