# src/vsched/domain/__init__.py
"""
Domain layer for vsched.

- states: ClaimState enum
- models: Pydantic models for API input/output
- errors: domain-level exceptions
"""

from .states import ClaimState
from .models import (
    AllowanceView,
    ApproveRequest,
    BalanceView,
    ClaimStatusView,
    ErrorResponse,
    HolderBalanceView,
    MintRequest,
    ReleaseListResponse,
    ReleaseResult,
    ReleaseView,
    ScheduleCreate,
    ScheduleView,
    SupplyView,
)
from .errors import (
    VestingError,
    InvalidScheduleError,
    TransferError,
    NotInVestingProgramError,
    NotStartedError,
    AlreadyReceivedError,
    NotFoundError,
    AlreadyExistsError,
)

__all__ = [
    "ClaimState",
    "ScheduleCreate",
    "ScheduleView",
    "ReleaseResult",
    "ReleaseView",
    "ReleaseListResponse",
    "HolderBalanceView",
    "ClaimStatusView",
    "MintRequest",
    "ApproveRequest",
    "BalanceView",
    "AllowanceView",
    "SupplyView",
    "ErrorResponse",
    "VestingError",
    "InvalidScheduleError",
    "TransferError",
    "NotInVestingProgramError",
    "NotStartedError",
    "AlreadyReceivedError",
    "NotFoundError",
    "AlreadyExistsError",
]
