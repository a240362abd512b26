# src/vsched/api/__init__.py
"""
API layer for vsched (FastAPI).

- app: FastAPI instance + lifecycle hooks
- routes: REST endpoints for schedules and the asset ledger
- deps: dependency injection helpers (connection, service, caller identity)
"""

from .app import app

__all__ = ["app"]
