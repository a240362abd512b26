# src/vsched/api/routes.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from vsched.domain.errors import (
    AlreadyExistsError,
    AlreadyReceivedError,
    InvalidScheduleError,
    NotFoundError,
    NotInVestingProgramError,
    NotStartedError,
    TransferError,
    VestingError,
)
from vsched.domain.models import (
    AllowanceView,
    ApproveRequest,
    BalanceView,
    ClaimStatusView,
    ErrorResponse,
    HolderBalanceView,
    MintRequest,
    ReleaseListResponse,
    ReleaseResult,
    ScheduleCreate,
    ScheduleView,
    SupplyView,
)
from vsched.engine import VestingService
from vsched.logging import get_logger
from vsched.storage import LedgerRepo

from .deps import get_caller, get_ledger, get_service

_LOG = get_logger(__name__)
router = APIRouter()


_HTTP_STATUS: dict[type[VestingError], int] = {
    InvalidScheduleError: 400,
    TransferError: 400,
    NotInVestingProgramError: 403,
    NotFoundError: 404,
    AlreadyExistsError: 409,
    NotStartedError: 409,
    AlreadyReceivedError: 409,
}


def _error_response(err: VestingError) -> JSONResponse:
    _LOG.debug("Request failed with %s: %s", err.code, err.message)
    payload = ErrorResponse(
        error=err.message,
        code=err.code,
        details=err.details or {},
    ).model_dump()
    return JSONResponse(status_code=_HTTP_STATUS.get(type(err), 400), content=payload)


@router.get("/healthz")
def healthz() -> dict:
    return {"ok": True}


# -------------------------
# Vesting schedules
# -------------------------


@router.post("/schedules", response_model=ScheduleView, status_code=201)
def create_schedule(
    payload: ScheduleCreate,
    caller: str = Depends(get_caller),
    service: VestingService = Depends(get_service),
):
    """
    Create a vesting schedule funded by the caller.

    The caller must have approved the custody address for at least `total`.
    Recipients receive `initialized_amount` immediately.
    """
    try:
        return service.create_schedule(caller, payload)
    except VestingError as e:
        return _error_response(e)


@router.get("/schedules/{asset}", response_model=ScheduleView)
def get_schedule(
    asset: str,
    service: VestingService = Depends(get_service),
):
    try:
        return service.get_schedule(asset)
    except VestingError as e:
        return _error_response(e)


@router.post("/schedules/{asset}/release", response_model=ReleaseResult)
def release(
    asset: str,
    caller: str = Depends(get_caller),
    service: VestingService = Depends(get_service),
):
    """
    Release every elapsed, unclaimed round to the caller.
    """
    try:
        return service.release(caller, asset)
    except VestingError as e:
        return _error_response(e)


@router.get("/schedules/{asset}/balance", response_model=HolderBalanceView)
def holder_balance(
    asset: str,
    caller: str = Depends(get_caller),
    service: VestingService = Depends(get_service),
):
    try:
        return service.holder_balance(caller, asset)
    except VestingError as e:
        return _error_response(e)


@router.get("/schedules/{asset}/claim-status", response_model=ClaimStatusView)
def claim_status(
    asset: str,
    caller: str = Depends(get_caller),
    service: VestingService = Depends(get_service),
):
    try:
        return service.claim_status(caller, asset)
    except VestingError as e:
        return _error_response(e)


@router.get("/schedules/{asset}/releases", response_model=ReleaseListResponse)
def list_releases(
    asset: str,
    limit: int = Query(default=200, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: VestingService = Depends(get_service),
):
    try:
        releases, total = service.list_releases(asset, limit=limit, offset=offset)
    except VestingError as e:
        return _error_response(e)
    return ReleaseListResponse(releases=releases, total=total)


# -------------------------
# Asset ledger
# -------------------------


@router.post("/assets/{asset}/mint", response_model=BalanceView, status_code=201)
def mint(
    asset: str,
    payload: MintRequest,
    caller: str = Depends(get_caller),
    ledger: LedgerRepo = Depends(get_ledger),
):
    """
    Issue `amount` new units of `asset` to the caller.
    """
    try:
        balance = ledger.mint(asset, caller, payload.amount)
    except VestingError as e:
        return _error_response(e)
    return BalanceView(asset=asset, holder=caller, balance=balance)


@router.post("/assets/{asset}/approve", response_model=AllowanceView)
def approve(
    asset: str,
    payload: ApproveRequest,
    caller: str = Depends(get_caller),
    ledger: LedgerRepo = Depends(get_ledger),
):
    try:
        ledger.approve(asset, caller, payload.spender, payload.amount)
    except VestingError as e:
        return _error_response(e)
    return AllowanceView(asset=asset, owner=caller, spender=payload.spender, allowance=payload.amount)


@router.get("/assets/{asset}/balances/{holder}", response_model=BalanceView)
def balance_of(
    asset: str,
    holder: str,
    ledger: LedgerRepo = Depends(get_ledger),
):
    return BalanceView(asset=asset, holder=holder, balance=ledger.balance_of(asset, holder))


@router.get("/assets/{asset}/allowances/{owner}/{spender}", response_model=AllowanceView)
def allowance(
    asset: str,
    owner: str,
    spender: str,
    ledger: LedgerRepo = Depends(get_ledger),
):
    return AllowanceView(
        asset=asset,
        owner=owner,
        spender=spender,
        allowance=ledger.allowance(asset, owner, spender),
    )


@router.get("/assets/{asset}/supply", response_model=SupplyView)
def total_supply(
    asset: str,
    ledger: LedgerRepo = Depends(get_ledger),
):
    return SupplyView(asset=asset, total_supply=ledger.total_supply(asset))
