# src/vsched/domain/states.py
from __future__ import annotations

from enum import StrEnum


class ClaimState(StrEnum):
    """
    Where a (schedule, caller) pair stands at a given instant.

    Nothing is stored: the state is derived from recipient membership, the
    clock, and the caller's round cursor every time it is needed.

      - UNAUTHORIZED: caller is not a recipient of the schedule
      - NOT_STARTED: now < start
      - ALREADY_RECEIVED: no whole round elapsed past the caller's cursor
        (also the resting state once every round has been claimed)
      - ELIGIBLE: at least one unclaimed round is payable
    """

    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_STARTED = "NOT_STARTED"
    ALREADY_RECEIVED = "ALREADY_RECEIVED"
    ELIGIBLE = "ELIGIBLE"
