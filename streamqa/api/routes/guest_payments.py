"""
Guest payment routes.

Register payment-reference URLs, read balances, poll the payment network and
apply streaming increments. No route sets an absolute total; balances
only rise through verified snapshots or stream increments.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from streamqa.api.deps import get_credit_gate, get_reconciler, get_rules
from streamqa.api.schemas import (
    IncrementRequest,
    IncrementResponse,
    PollRequest,
    PollResponse,
    RegisterPaymentRequest,
    RegisterPaymentResponse,
)
from streamqa.components.balance import (
    BalanceReconciler,
    IncrementInput,
    InvalidAmountError,
    InvalidPaymentUrlError,
    PollInput,
    RegisterUrlInput,
    run_increment,
    run_poll,
    run_register,
)
from streamqa.components.credits import BalanceInput, CreditGate, run_get_balance
from streamqa.domain.currency import format_amount
from streamqa.domain.entities import GuestBalance
from streamqa.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


def _currency(rules: Rules, asset_code: str | None, asset_scale: int | None) -> tuple[str, int]:
    return (
        asset_code or rules.credits.default_asset_code,
        asset_scale if asset_scale is not None else rules.credits.default_asset_scale,
    )


@router.post("", response_model=RegisterPaymentResponse)
async def register_incoming_payment(
    req: RegisterPaymentRequest,
    reconciler: BalanceReconciler = Depends(get_reconciler),
    rules: Rules = Depends(get_rules),
) -> RegisterPaymentResponse:
    """Register an incoming payment URL reported by the browser."""
    asset_code, asset_scale = _currency(rules, req.asset_code, req.asset_scale)
    inp = RegisterUrlInput(
        guest_id=req.guest_id,
        session_id=req.session_id,
        url=req.incoming_payment_url,
        asset_code=asset_code,
        asset_scale=asset_scale,
    )
    try:
        result = await run_register(inp, reconciler)
    except InvalidPaymentUrlError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return RegisterPaymentResponse(
        guest_payment=result.record,
        newly_registered=result.newly_registered,
        verified=result.verified,
    )


@router.get("", response_model=GuestBalance)
def get_guest_balance(
    guest_id: str = Query(..., alias="guestId", min_length=1),
    session_id: str = Query(..., alias="sessionId", min_length=1),
    gate: CreditGate = Depends(get_credit_gate),
) -> GuestBalance:
    """Current balance and question credits; zero for guests without payments."""
    balance = run_get_balance(BalanceInput(guest_id=guest_id, session_id=session_id), gate)
    logger.info(
        "[BALANCE CHECK] Guest balance retrieved guest=%s session=%s balance=%s credits=%d",
        guest_id,
        session_id,
        format_amount(balance.balance, balance.asset_code, balance.asset_scale),
        balance.question_credits,
    )
    return balance


@router.post("/poll", response_model=PollResponse)
async def poll_guest_payments(
    req: PollRequest,
    reconciler: BalanceReconciler = Depends(get_reconciler),
) -> PollResponse:
    """Poll every registered URL of the guest and ratchet the total."""
    result = await run_poll(PollInput(guest_id=req.guest_id, session_id=req.session_id), reconciler)
    return PollResponse(
        total_received=result.total_received,
        previous_total=result.previous_total,
        updated=result.updated,
        polled_total=result.polled_total,
        urls_polled=result.urls_polled,
        urls_failed=result.urls_failed,
        timed_out=result.timed_out,
    )


@router.post("/increment", response_model=IncrementResponse)
def increment_guest_balance(
    req: IncrementRequest,
    reconciler: BalanceReconciler = Depends(get_reconciler),
    rules: Rules = Depends(get_rules),
) -> IncrementResponse:
    """Add a streaming payment increment to the guest's total."""
    asset_code, asset_scale = _currency(rules, req.asset_code, req.asset_scale)
    inp = IncrementInput(
        guest_id=req.guest_id,
        session_id=req.session_id,
        amount_delta=req.amount_received,
        asset_code=asset_code,
        asset_scale=asset_scale,
    )
    try:
        result = run_increment(inp, reconciler)
    except InvalidAmountError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return IncrementResponse(
        guest_payment=result.record,
        previous_total=result.previous_total,
        new_total=result.new_total,
        amount_received=req.amount_received,
    )
