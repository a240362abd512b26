# src/vsched/engine/service.py
from __future__ import annotations

from typing import Optional

from vsched.domain.errors import (
    AlreadyExistsError,
    AlreadyReceivedError,
    NotFoundError,
    NotInVestingProgramError,
    NotStartedError,
    VestingError,
)
from vsched.domain.models import (
    ClaimStatusView,
    HolderBalanceView,
    ReleaseResult,
    ReleaseView,
    ScheduleCreate,
    ScheduleView,
)
from vsched.domain.states import ClaimState
from vsched.logging import get_logger
from vsched.storage import ScheduleRepo, snapshot
from vsched.storage.db import begin_immediate, commit, rollback

from .clock import Clock, now_ms, read_clock
from .ledger import AssetLedger
from .locks import AssetLocks
from .vesting import amount_received, claim_state, rounds_elapsed, token_receive_per_round

_LOG = get_logger(__name__)

NOT_IN_PROGRAM_MSG = "Address is not in vesting program"
NOT_STARTED_MSG = "Vesting program hasn't started yet"
ALREADY_RECEIVED_MSG = "Received this round. Please wait for next round to receive more!"


class VestingService:
    """
    Creates vesting schedules and pays out rounds to recipients.

    Concurrency semantics:
    - Every mutation holds the asset's in-process lock and runs inside one
      SQLite BEGIN IMMEDIATE transaction, so two releases for the same
      schedule never interleave.
    - The cursor update is guarded by its previous value; a stale guard
      aborts the release with AlreadyReceivedError.
    - Reads run inside a snapshot and never observe half-applied releases.

    The ledger must operate on the same connection as `repo` for ledger
    moves to be part of the schedule transaction (LedgerRepo(repo.conn)).
    """

    def __init__(
        self,
        repo: ScheduleRepo,
        ledger: AssetLedger,
        *,
        locks: AssetLocks,
        custody_address: str,
        clock: Clock = now_ms,
    ) -> None:
        if not custody_address:
            raise ValueError("custody_address must not be empty")

        self._repo = repo
        self._conn = repo.conn
        self._ledger = ledger
        self._locks = locks
        self._custody = custody_address
        self._clock = clock

    @property
    def custody_address(self) -> str:
        return self._custody

    # -------------------------
    # Mutations
    # -------------------------

    def create_schedule(self, caller: str, req: ScheduleCreate) -> ScheduleView:
        """
        Pulls `total` from the caller into custody, pays the initial unlock to
        every recipient and persists the schedule. All or nothing.

        A second schedule for the same asset is rejected with AlreadyExistsError.
        """
        recipients = req.recipients
        per_round = token_receive_per_round(
            req.total,
            req.initialized_amount,
            len(recipients),
            req.number_of_rounds,
        )
        unlock = req.initialized_amount * len(recipients)

        with self._locks.hold(req.asset):
            now = read_clock(self._clock)
            try:
                begin_immediate(self._conn)

                if self._repo.schedule_exists(req.asset):
                    raise AlreadyExistsError(
                        f"Vesting schedule already exists: {req.asset}",
                        details={"asset": req.asset},
                    )

                self._ledger.transfer_from(req.asset, self._custody, caller, self._custody, req.total)

                self._repo.insert_schedule(
                    asset=req.asset,
                    creator=caller,
                    start=req.start,
                    number_of_rounds=req.number_of_rounds,
                    duration=req.duration,
                    initialized_amount=req.initialized_amount,
                    token_receive_per_round=per_round,
                    released=unlock,
                    total=req.total,
                    recipients=recipients,
                    now_ms=now,
                )

                for recipient in recipients:
                    self._ledger.transfer(req.asset, self._custody, recipient, req.initialized_amount)

                view = self._repo.get_schedule(req.asset)
                commit(self._conn)
            except Exception:
                rollback(self._conn)
                raise

        _LOG.info(
            "Created vesting schedule for %s: recipients=%d rounds=%d per_round=%d unlocked=%d total=%d",
            req.asset,
            len(recipients),
            req.number_of_rounds,
            per_round,
            unlock,
            req.total,
        )
        return view

    def release(self, caller: str, asset: str) -> ReleaseResult:
        """
        Pays the caller every round elapsed since their last claim, in one transfer.
        """
        with self._locks.hold(asset):
            try:
                begin_immediate(self._conn)
                result = self._release_locked(caller, asset)
                commit(self._conn)
            except VestingError as e:
                rollback(self._conn)
                _LOG.info("Release rejected for %s on %s: %s", caller, asset, e.code)
                raise
            except Exception:
                rollback(self._conn)
                raise

        _LOG.info(
            "Released %d to %s on %s (%d round(s), cursor=%d)",
            result.amount,
            caller,
            asset,
            result.rounds_released,
            result.rounds_claimed,
        )
        return result

    def _release_locked(self, caller: str, asset: str) -> ReleaseResult:
        schedule = self._repo.get_schedule(asset)
        cursor = self._repo.get_cursor(asset, caller)
        claimed = int(cursor["rounds_claimed"]) if cursor else 0
        now = read_clock(self._clock)

        state = claim_state(
            is_recipient=cursor is not None,
            now=now,
            start=schedule.start,
            duration=schedule.duration,
            number_of_rounds=schedule.number_of_rounds,
            rounds_claimed=claimed,
        )
        if state is ClaimState.UNAUTHORIZED:
            raise NotInVestingProgramError(NOT_IN_PROGRAM_MSG, details={"asset": asset, "address": caller})
        if state is ClaimState.NOT_STARTED:
            raise NotStartedError(NOT_STARTED_MSG, details={"asset": asset, "start": schedule.start, "now": now})
        if state is ClaimState.ALREADY_RECEIVED:
            raise AlreadyReceivedError(
                ALREADY_RECEIVED_MSG,
                details={
                    "asset": asset,
                    "rounds_claimed": claimed,
                    "next_round_at": _next_round_at(schedule, claimed),
                },
            )

        reached = rounds_elapsed(now, schedule.start, schedule.duration, schedule.number_of_rounds)
        new_rounds = reached - claimed
        amount = new_rounds * schedule.token_receive_per_round

        if not self._repo.advance_cursor(asset, caller, expected=claimed, to=reached, now_ms=now):
            raise AlreadyReceivedError(ALREADY_RECEIVED_MSG, details={"asset": asset, "rounds_claimed": claimed})

        self._ledger.transfer(asset, self._custody, caller, amount)
        self._repo.add_released(asset, amount, now)
        self._repo.record_release(
            asset=asset,
            recipient=caller,
            from_round=claimed,
            to_round=reached,
            amount=amount,
            now_ms=now,
        )

        return ReleaseResult(
            asset=asset,
            recipient=caller,
            rounds_released=new_rounds,
            amount=amount,
            rounds_claimed=reached,
            received=amount_received(schedule.initialized_amount, reached, schedule.token_receive_per_round),
            released_at=now,
        )

    # -------------------------
    # Queries
    # -------------------------

    def get_schedule(self, asset: str) -> ScheduleView:
        with snapshot(self._conn):
            return self._repo.get_schedule(asset)

    def holder_balance(self, caller: str, asset: str) -> HolderBalanceView:
        """
        Cumulative amount the caller has received from the schedule so far.
        """
        with snapshot(self._conn):
            schedule = self._repo.get_schedule(asset)
            cursor = self._repo.get_cursor(asset, caller)

        if cursor is None:
            raise NotInVestingProgramError(NOT_IN_PROGRAM_MSG, details={"asset": asset, "address": caller})

        claimed = int(cursor["rounds_claimed"])
        return HolderBalanceView(
            asset=asset,
            holder=caller,
            rounds_claimed=claimed,
            received=amount_received(schedule.initialized_amount, claimed, schedule.token_receive_per_round),
            last_claimed_at=cursor["last_claimed_at"],
        )

    def claim_status(self, caller: str, asset: str) -> ClaimStatusView:
        with snapshot(self._conn):
            schedule = self._repo.get_schedule(asset)
            cursor = self._repo.get_cursor(asset, caller)

        claimed = int(cursor["rounds_claimed"]) if cursor else 0
        now = read_clock(self._clock)
        state = claim_state(
            is_recipient=cursor is not None,
            now=now,
            start=schedule.start,
            duration=schedule.duration,
            number_of_rounds=schedule.number_of_rounds,
            rounds_claimed=claimed,
        )
        elapsed = rounds_elapsed(now, schedule.start, schedule.duration, schedule.number_of_rounds)

        claimable = 0
        if state is ClaimState.ELIGIBLE:
            claimable = (elapsed - claimed) * schedule.token_receive_per_round

        return ClaimStatusView(
            asset=asset,
            holder=caller,
            state=state,
            now=now,
            rounds_elapsed=elapsed,
            rounds_claimed=claimed,
            claimable=claimable,
        )

    def list_releases(self, asset: str, limit: int = 200, offset: int = 0) -> tuple[list[ReleaseView], int]:
        with snapshot(self._conn):
            if not self._repo.schedule_exists(asset):
                raise NotFoundError(f"Vesting schedule not found: {asset}", details={"asset": asset})
            return self._repo.list_releases(asset, limit=limit, offset=offset)


def _next_round_at(schedule: ScheduleView, rounds_claimed: int) -> Optional[int]:
    if rounds_claimed >= schedule.number_of_rounds:
        return None
    return schedule.start + (rounds_claimed + 1) * schedule.duration
