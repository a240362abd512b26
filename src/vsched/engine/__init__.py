# src/vsched/engine/__init__.py
"""
Vesting engine for vsched.

- vesting: round arithmetic and the per-caller claim state machine
- service: schedule creation, release, queries (transactional)
- locks: per-asset mutual exclusion
- clock: injectable millisecond clock
- ledger: the asset ledger protocol the service depends on
"""

from .clock import Clock, now_ms
from .ledger import AssetLedger
from .locks import AssetLocks
from .service import VestingService

__all__ = ["Clock", "now_ms", "AssetLedger", "AssetLocks", "VestingService"]
