# tests/test_storage.py
import sqlite3
from pathlib import Path

import pytest

from vsched.config import load_settings
from vsched.engine import AssetLocks
from vsched.storage import ScheduleRepo, SQLiteDB, apply_migrations, atomic


def test_migrations_are_idempotent(tmp_path: Path):
    db = SQLiteDB(tmp_path / "m.db")
    conn = db.connect()
    try:
        assert apply_migrations(conn) == 2
        assert apply_migrations(conn) == 0
        tables = {r["name"] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table';")}
        assert {"schedules", "recipients", "releases", "balances", "allowances"} <= tables
    finally:
        conn.close()


def _insert(repo: ScheduleRepo) -> None:
    with atomic(repo.conn):
        repo.insert_schedule(
            asset="A",
            creator="c",
            start=0,
            number_of_rounds=4,
            duration=10,
            initialized_amount=0,
            token_receive_per_round=25,
            released=0,
            total=100,
            recipients=["x", "y"],
            now_ms=1,
        )


def test_cursor_update_is_guarded(conn):
    repo = ScheduleRepo(conn)
    _insert(repo)

    with atomic(conn):
        assert repo.advance_cursor("A", "x", expected=0, to=2, now_ms=5) is True
    with atomic(conn):
        # stale expectation
        assert repo.advance_cursor("A", "x", expected=0, to=3, now_ms=6) is False

    cursor = repo.get_cursor("A", "x")
    assert cursor["rounds_claimed"] == 2
    assert cursor["last_claimed_at"] == 5
    assert repo.get_cursor("A", "nobody") is None


def test_released_cannot_exceed_total(conn):
    repo = ScheduleRepo(conn)
    _insert(repo)

    with pytest.raises(sqlite3.IntegrityError):
        with atomic(conn):
            repo.add_released("A", 101, now_ms=2)

    assert repo.get_schedule("A").released == 0


def test_asset_locks_are_per_asset():
    locks = AssetLocks()
    a = locks.lock_for("A")
    assert locks.lock_for("A") is a
    assert locks.lock_for("B") is not a
    with locks.hold("A"):
        assert a.locked()
        assert not locks.lock_for("B").locked()
    assert len(locks) == 1


def test_asset_locks_drop_unused_entries():
    locks = AssetLocks()
    for i in range(100):
        with locks.hold(f"ghost-{i}"):
            pass
    assert len(locks) == 0


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("VSCHED_DB_PATH", str(tmp_path / "x.db"))
    monkeypatch.setenv("VSCHED_CUSTODY_ADDRESS", "vault")
    monkeypatch.setenv("VSCHED_PORT", "9001")
    monkeypatch.delenv("VSCHED_DB_TIMEOUT_MS", raising=False)

    settings = load_settings()
    assert settings.db_path == tmp_path / "x.db"
    assert settings.custody_address == "vault"
    assert settings.port == 9001
    assert settings.db_timeout_s == 5.0


def test_settings_reject_bad_values(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("VSCHED_PORT", "not-a-port")
    with pytest.raises(ValueError):
        load_settings()

    monkeypatch.setenv("VSCHED_PORT", "8000")
    monkeypatch.setenv("VSCHED_DB_TIMEOUT_MS", "0")
    with pytest.raises(ValueError):
        load_settings()
