# src/vsched/engine/vesting.py
"""
Round arithmetic for discrete vesting schedules.

All amounts are integers. Division is floor division; whatever does not
divide evenly stays in custody and is never paid out.
"""
from __future__ import annotations

from vsched.domain.errors import InvalidScheduleError
from vsched.domain.states import ClaimState


def token_receive_per_round(
    total: int,
    initialized_amount: int,
    recipient_count: int,
    number_of_rounds: int,
) -> int:
    """
    Amount each recipient earns per elapsed round:

        floor((total - initialized_amount * n) / (number_of_rounds * n))
    """
    if recipient_count <= 0:
        raise InvalidScheduleError("Vesting schedule needs at least one recipient")
    if number_of_rounds <= 0:
        raise InvalidScheduleError(
            "number_of_rounds must be > 0",
            details={"number_of_rounds": number_of_rounds},
        )

    unlock = initialized_amount * recipient_count
    if total < unlock:
        raise InvalidScheduleError(
            "Total does not cover the initial unlock for every recipient",
            details={"total": total, "initial_unlock": unlock, "recipients": recipient_count},
        )
    return (total - unlock) // (number_of_rounds * recipient_count)


def rounds_elapsed(now: int, start: int, duration: int, number_of_rounds: int) -> int:
    """
    Whole rounds elapsed since `start`, capped at `number_of_rounds`. Zero before start.
    """
    if now < start:
        return 0
    return min((now - start) // duration, number_of_rounds)


def claim_state(
    *,
    is_recipient: bool,
    now: int,
    start: int,
    duration: int,
    number_of_rounds: int,
    rounds_claimed: int,
) -> ClaimState:
    # Order matters: membership, then start time, then new rounds.
    if not is_recipient:
        return ClaimState.UNAUTHORIZED
    if now < start:
        return ClaimState.NOT_STARTED
    if rounds_elapsed(now, start, duration, number_of_rounds) <= rounds_claimed:
        return ClaimState.ALREADY_RECEIVED
    return ClaimState.ELIGIBLE


def amount_received(initialized_amount: int, rounds_claimed: int, per_round: int) -> int:
    """Cumulative amount a recipient has received: unlock plus claimed rounds."""
    return initialized_amount + rounds_claimed * per_round
