# tests/conftest.py
import importlib
import itertools
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from vsched.domain.models import ScheduleCreate
from vsched.engine import AssetLocks, VestingService
from vsched.storage import LedgerRepo, ScheduleRepo, SQLiteDB, apply_migrations

_counter = itertools.count(1)

CUSTODY = "vesting-scheduler"
ASSET = "TEST"

# Schedule timing used across tests (milliseconds).
START = 1_700_000_000_000
DURATION = 10_000
ROUNDS = 10

DEFAULT_ENV = {
    "VSCHED_CUSTODY_ADDRESS": CUSTODY,
    "VSCHED_DB_TIMEOUT_MS": "5000",
    "VSCHED_LOG_LEVEL": "warning",
}


class FakeClock:
    """Controllable millisecond clock."""

    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now

    def set(self, now: int) -> None:
        self.now = now


@pytest.fixture()
def clock() -> FakeClock:
    # Schedules start one round after the initial clock reading.
    return FakeClock(START - DURATION)


@pytest.fixture()
def db(tmp_path: Path) -> SQLiteDB:
    db = SQLiteDB(tmp_path / "vesting.db")
    conn = db.connect()
    try:
        apply_migrations(conn)
    finally:
        conn.close()
    return db


@pytest.fixture()
def conn(db: SQLiteDB):
    conn = db.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture()
def ledger(conn) -> LedgerRepo:
    return LedgerRepo(conn)


@pytest.fixture()
def locks() -> AssetLocks:
    return AssetLocks()


@pytest.fixture()
def service(conn, ledger: LedgerRepo, clock: FakeClock, locks: AssetLocks) -> VestingService:
    return VestingService(
        ScheduleRepo(conn),
        ledger,
        locks=locks,
        custody_address=CUSTODY,
        clock=clock,
    )


@pytest.fixture()
def fund(ledger: LedgerRepo) -> Callable[..., None]:
    """
    Mints `amount` to `owner` and approves the custody address for `approve`
    (defaults to the full amount).
    """

    def _fund(owner: str, amount: int, *, approve: Optional[int] = None, asset: str = ASSET) -> None:
        ledger.mint(asset, owner, amount)
        ledger.approve(asset, owner, CUSTODY, amount if approve is None else approve)

    return _fund


def make_schedule(recipients: list[str], **overrides) -> ScheduleCreate:
    fields = {
        "asset": ASSET,
        "start": START,
        "number_of_rounds": ROUNDS,
        "duration": DURATION,
        "initialized_amount": 10,
        "total": 1_000_000_000,
        "recipients": recipients,
    }
    fields.update(overrides)
    return ScheduleCreate(**fields)


@pytest.fixture()
def schedule_factory() -> Callable[..., ScheduleCreate]:
    return make_schedule


def _apply_env(monkeypatch: pytest.MonkeyPatch, db_path: Path, overrides: Optional[dict[str, str]] = None) -> None:
    monkeypatch.setenv("VSCHED_DB_PATH", str(db_path))
    for k, v in DEFAULT_ENV.items():
        monkeypatch.setenv(k, v)
    if overrides:
        for k, v in overrides.items():
            monkeypatch.setenv(k, v)


@contextmanager
def _client_ctx(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, clock: FakeClock, *,
                overrides: Optional[dict[str, str]] = None) -> Iterator[TestClient]:
    db_path = tmp_path / f"vesting_{next(_counter)}.db"
    _apply_env(monkeypatch, db_path, overrides)

    # Import after env is set; reload to avoid cross-test state
    app_mod = importlib.import_module("vsched.api.app")
    importlib.reload(app_mod)

    with TestClient(app_mod.app) as client:
        app_mod.app.state.clock = clock
        yield client


@pytest.fixture()
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, clock: FakeClock) -> Iterator[TestClient]:
    """
    Integration test client on a fresh sqlite db, driven by the fake clock.
    """
    with _client_ctx(monkeypatch, tmp_path, clock) as c:
        yield c
