#!/usr/bin/env python3
# scripts/init_db.py
from __future__ import annotations

from vsched.config import load_settings
from vsched.logging import configure_logging, get_logger
from vsched.storage import SQLiteDB, apply_migrations


def main() -> int:
    settings = load_settings()
    configure_logging(settings.log_level)
    log = get_logger(__name__)

    db = SQLiteDB(settings.db_path, timeout_s=settings.db_timeout_s)
    conn = db.connect()
    try:
        applied = apply_migrations(conn)
    finally:
        conn.close()

    log.info("DB initialized at %s (%d migration(s) applied)", settings.db_path, applied)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
