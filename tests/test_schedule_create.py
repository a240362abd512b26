# tests/test_schedule_create.py
import pytest
from pydantic import ValidationError

from vsched.domain.errors import AlreadyExistsError, InvalidScheduleError, NotFoundError, TransferError
from vsched.domain.models import ScheduleCreate
from vsched.engine import VestingService
from vsched.storage import LedgerRepo

from conftest import ASSET, CUSTODY, DURATION, ROUNDS, START, make_schedule

OWNER = "owner"
OTHERS = [f"account-{i}" for i in range(1, 10)]
TOTAL = 1_000_000_000


def test_create_schedule_reference_deployment(service: VestingService, ledger: LedgerRepo, fund):
    recipients = [OWNER, *OTHERS]
    fund(OWNER, TOTAL)

    view = service.create_schedule(OWNER, make_schedule(recipients))

    assert view.asset == ASSET
    assert view.creator == OWNER
    assert view.start == START
    assert view.duration == DURATION
    assert view.number_of_rounds == ROUNDS
    assert view.initialized_amount == 10
    assert view.token_receive_per_round == 9_999_999
    assert view.released == 100
    assert view.total == TOTAL
    assert view.recipients == recipients

    # every recipient got the initial unlock
    for r in recipients:
        assert ledger.balance_of(ASSET, r) == 10
    # owner paid total, got their own unlock back
    assert ledger.balance_of(ASSET, OWNER) == TOTAL - TOTAL + 10
    assert ledger.balance_of(ASSET, CUSTODY) == TOTAL - 100
    assert ledger.allowance(ASSET, OWNER, CUSTODY) == 0

    assert service.holder_balance(OWNER, ASSET).received == 10
    assert service.get_schedule(ASSET) == view


def test_duplicate_recipients_first_occurrence_wins(service: VestingService, ledger: LedgerRepo, fund):
    fund(OWNER, 1_000)

    view = service.create_schedule(OWNER, make_schedule(["b", "a", "b"], total=1_000))

    assert view.recipients == ["b", "a"]
    assert view.released == 20
    assert view.token_receive_per_round == (1_000 - 20) // (ROUNDS * 2)
    assert ledger.balance_of(ASSET, "b") == 10


def test_total_below_initial_unlock_rejected(service: VestingService, ledger: LedgerRepo, fund):
    fund(OWNER, 1_000)

    with pytest.raises(InvalidScheduleError):
        service.create_schedule(OWNER, make_schedule(OTHERS, total=89))

    with pytest.raises(NotFoundError):
        service.get_schedule(ASSET)
    assert ledger.balance_of(ASSET, OWNER) == 1_000


def test_missing_approval_rolls_back(service: VestingService, ledger: LedgerRepo, fund):
    fund(OWNER, TOTAL, approve=TOTAL - 1)

    with pytest.raises(TransferError):
        service.create_schedule(OWNER, make_schedule([OWNER, *OTHERS]))

    with pytest.raises(NotFoundError):
        service.get_schedule(ASSET)
    assert ledger.balance_of(ASSET, OWNER) == TOTAL
    assert ledger.balance_of(ASSET, CUSTODY) == 0
    assert ledger.balance_of(ASSET, OTHERS[0]) == 0
    assert ledger.allowance(ASSET, OWNER, CUSTODY) == TOTAL - 1


def test_insufficient_balance_rejected(service: VestingService, ledger: LedgerRepo, fund):
    fund(OWNER, 500, approve=TOTAL)

    with pytest.raises(TransferError):
        service.create_schedule(OWNER, make_schedule(OTHERS))

    assert ledger.balance_of(ASSET, OWNER) == 500


def test_second_schedule_for_asset_rejected(service: VestingService, ledger: LedgerRepo, fund):
    fund(OWNER, 2_000)
    first = service.create_schedule(OWNER, make_schedule(["a", "b"], total=1_000))

    with pytest.raises(AlreadyExistsError) as exc:
        service.create_schedule(OWNER, make_schedule(["c"], total=1_000))

    assert exc.value.code == "ALREADY_EXISTS"
    assert service.get_schedule(ASSET) == first
    assert ledger.balance_of(ASSET, "c") == 0
    # only the first total was pulled
    assert ledger.balance_of(ASSET, OWNER) == 1_000


def test_schedules_for_different_assets_are_independent(service: VestingService, ledger: LedgerRepo, fund):
    fund(OWNER, 1_000, asset="A")
    fund(OWNER, 1_000, asset="B")

    service.create_schedule(OWNER, make_schedule(["x"], asset="A", total=1_000))
    service.create_schedule(OWNER, make_schedule(["x"], asset="B", total=1_000, initialized_amount=0))

    assert ledger.balance_of("A", "x") == 10
    assert ledger.balance_of("B", "x") == 0


def test_schedule_shape_validation():
    with pytest.raises(ValidationError):
        make_schedule([])
    with pytest.raises(ValidationError):
        make_schedule(["a"], number_of_rounds=0)
    with pytest.raises(ValidationError):
        make_schedule(["a"], duration=0)
    with pytest.raises(ValidationError):
        make_schedule(["a"], total=-1)
    with pytest.raises(ValidationError):
        ScheduleCreate(asset="A", start=0, number_of_rounds=1, duration=1, initialized_amount=0,
                       total=1, recipients=["a"], unexpected=True)


def test_per_second_schedule_over_a_year(service: VestingService, ledger: LedgerRepo, fund, clock):
    rounds = 365 * 24 * 3600
    fund(OWNER, TOTAL)

    view = service.create_schedule(OWNER, make_schedule(["x"], number_of_rounds=rounds, duration=1_000))
    per_round = (TOTAL - 10) // rounds
    assert view.number_of_rounds == rounds
    assert view.token_receive_per_round == per_round

    clock.set(START + 5_000)
    result = service.release("x", ASSET)
    assert result.rounds_released == 5
    assert ledger.balance_of(ASSET, "x") == 10 + 5 * per_round
