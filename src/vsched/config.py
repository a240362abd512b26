# src/vsched/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _get_env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"Environment variable {name} must be an int, got: {raw!r}") from e
    return value


def _get_env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    # Database
    db_path: Path
    db_timeout_ms: int

    # Address that holds tokens in custody for every schedule
    custody_address: str

    # Server (used by vsched.main when starting uvicorn programmatically)
    host: str
    port: int
    log_level: str

    @property
    def db_timeout_s(self) -> float:
        return self.db_timeout_ms / 1000.0


def load_settings() -> Settings:
    """
    Loads settings from env vars with sane defaults.

    Env vars:
      - VSCHED_DB_PATH (default: ./var/vesting.db)
      - VSCHED_DB_TIMEOUT_MS (default: 5000)
      - VSCHED_CUSTODY_ADDRESS (default: vesting-scheduler)
      - VSCHED_HOST (default: 127.0.0.1)
      - VSCHED_PORT (default: 8000)
      - VSCHED_LOG_LEVEL (default: info)
    """
    db_path = Path(_get_env_str("VSCHED_DB_PATH", "./var/vesting.db")).expanduser()

    db_timeout_ms = _get_env_int("VSCHED_DB_TIMEOUT_MS", 5_000)
    if db_timeout_ms <= 0:
        raise ValueError("VSCHED_DB_TIMEOUT_MS must be > 0")

    custody_address = _get_env_str("VSCHED_CUSTODY_ADDRESS", "vesting-scheduler")
    if len(custody_address) > 256:
        raise ValueError("VSCHED_CUSTODY_ADDRESS must be at most 256 characters")

    host = _get_env_str("VSCHED_HOST", "127.0.0.1")
    port = _get_env_int("VSCHED_PORT", 8000)
    if not (1 <= port <= 65535):
        raise ValueError("VSCHED_PORT must be between 1 and 65535")

    log_level = _get_env_str("VSCHED_LOG_LEVEL", "info").lower()

    return Settings(
        db_path=db_path,
        db_timeout_ms=db_timeout_ms,
        custody_address=custody_address,
        host=host,
        port=port,
        log_level=log_level,
    )
