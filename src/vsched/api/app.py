# src/vsched/api/app.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from vsched.config import load_settings
from vsched.engine import AssetLocks, now_ms
from vsched.logging import configure_logging, get_logger
from vsched.storage import SQLiteDB, apply_migrations

from .routes import router

_LOG = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan handler.

    Responsible for:
    - loading settings
    - configuring logging
    - running DB migrations
    - wiring the clock and per-asset locks shared by every request
    """
    settings = load_settings()
    configure_logging(settings.log_level)

    db = SQLiteDB(settings.db_path, timeout_s=settings.db_timeout_s)

    # Run migrations once at startup (idempotent)
    conn = db.connect()
    try:
        apply_migrations(conn)
    finally:
        conn.close()

    # Store on app.state for DI
    app.state.settings = settings
    app.state.db = db
    app.state.clock = now_ms
    app.state.locks = AssetLocks()

    _LOG.info("Startup complete.")

    try:
        yield
    finally:
        _LOG.info("Shutdown complete.")


app = FastAPI(
    title="Token Vesting Scheduler",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(router)
