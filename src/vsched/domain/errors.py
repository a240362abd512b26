# src/vsched/domain/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class VestingError(Exception):
    """
    Base domain error.

    Every failed precondition raises one of these inside the write
    transaction, so the caller sees the error and the database sees nothing.
    The API layer maps them to HTTP responses consistently.
    """
    message: str
    code: str = "VESTING_ERROR"
    details: Optional[dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message


@dataclass
class InvalidScheduleError(VestingError):
    code: str = "INVALID_SCHEDULE"


@dataclass
class TransferError(VestingError):
    code: str = "TRANSFER_FAILED"


@dataclass
class NotInVestingProgramError(VestingError):
    code: str = "NOT_IN_VESTING_PROGRAM"


@dataclass
class NotStartedError(VestingError):
    code: str = "NOT_STARTED"


@dataclass
class AlreadyReceivedError(VestingError):
    code: str = "ALREADY_RECEIVED"


@dataclass
class NotFoundError(VestingError):
    code: str = "NOT_FOUND"


@dataclass
class AlreadyExistsError(VestingError):
    code: str = "ALREADY_EXISTS"
