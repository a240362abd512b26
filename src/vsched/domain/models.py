# src/vsched/domain/models.py
from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .states import ClaimState


# SQLite stores INTEGER as signed 64-bit.
MAX_AMOUNT = 2**63 - 1

Address = Annotated[str, Field(min_length=1, max_length=256)]
AssetId = Annotated[str, Field(min_length=1, max_length=256)]
Amount = Annotated[int, Field(ge=0, le=MAX_AMOUNT)]
Timestamp = Annotated[int, Field(ge=0, le=MAX_AMOUNT)]


class ScheduleCreate(BaseModel):
    """
    API input model for creating a vesting schedule.

    Shape checks only. Whether `total` covers the initial unlock is checked
    by the service, which raises InvalidScheduleError.
    """
    model_config = ConfigDict(extra="forbid")

    asset: AssetId
    start: Timestamp
    number_of_rounds: Annotated[int, Field(gt=0, le=MAX_AMOUNT)]
    duration: Annotated[int, Field(gt=0, le=MAX_AMOUNT)]
    initialized_amount: Amount
    total: Amount
    recipients: list[Address] = Field(min_length=1)

    @field_validator("recipients")
    @classmethod
    def _dedupe_recipients(cls, recipients: list[str]) -> list[str]:
        # First occurrence wins; order is preserved.
        return list(dict.fromkeys(recipients))


class ScheduleView(BaseModel):
    """
    API output model for a single schedule.
    """
    model_config = ConfigDict(extra="forbid")

    asset: str
    creator: str
    start: int
    number_of_rounds: int
    duration: int
    initialized_amount: int
    token_receive_per_round: int
    released: int
    total: int
    recipients: list[str] = Field(default_factory=list)

    created_at: int
    updated_at: int


class ReleaseResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    asset: str
    recipient: str
    rounds_released: int
    amount: int

    # cursor and cumulative total after this release
    rounds_claimed: int
    received: int

    released_at: int


class ReleaseView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    asset: str
    recipient: str
    from_round: int
    to_round: int
    amount: int
    released_at: int


class ReleaseListResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    releases: list[ReleaseView]
    total: int


class HolderBalanceView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    asset: str
    holder: str
    rounds_claimed: int
    received: int
    last_claimed_at: Optional[int] = None


class ClaimStatusView(BaseModel):
    """
    Read-only preview of what a release would do right now.
    """
    model_config = ConfigDict(extra="forbid")

    asset: str
    holder: str
    state: ClaimState
    now: int
    rounds_elapsed: int
    rounds_claimed: int
    claimable: int


class MintRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: Amount


class ApproveRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    spender: Address
    amount: Amount


class BalanceView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    asset: str
    holder: str
    balance: int


class AllowanceView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    asset: str
    owner: str
    spender: str
    allowance: int


class SupplyView(BaseModel):
    model_config = ConfigDict(extra="forbid")

    asset: str
    total_supply: int


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error: str
    code: str
    details: dict = Field(default_factory=dict)
