# src/vsched/engine/clock.py
from __future__ import annotations

import time
from typing import Callable

# Returns the current time as integer epoch milliseconds.
Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


def read_clock(clock: Clock) -> int:
    timestamp = clock()
    try:
        return int(timestamp)
    except (TypeError, ValueError) as exc:
        raise ValueError("clock must return an integer timestamp") from exc
