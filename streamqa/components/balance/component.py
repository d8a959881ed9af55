"""
Balance component - Guest payment reconciliation.

Shell Layer - thin run_* entry points over BalanceReconciler.
"""

from __future__ import annotations

from typing import Any

from ._impl import BalanceReconciler
from .models import (
    IncrementInput,
    IncrementOutput,
    PollInput,
    PollResult,
    ReconcilerConfig,
    RegisterUrlInput,
    RegisterUrlOutput,
)


async def run_register(
    input_data: RegisterUrlInput,
    reconciler: BalanceReconciler,
) -> RegisterUrlOutput:
    """Register a payment-reference URL, verifying it once if new."""
    return await reconciler.register_incoming_payment_url(
        guest_id=input_data.guest_id,
        session_id=input_data.session_id,
        url=input_data.url,
        asset_code=input_data.asset_code,
        asset_scale=input_data.asset_scale,
    )


async def run_poll(
    input_data: PollInput,
    reconciler: BalanceReconciler,
) -> PollResult:
    """Poll all registered URLs and ratchet the stored total."""
    return await reconciler.poll_and_reconcile(input_data.guest_id, input_data.session_id)


def run_increment(
    input_data: IncrementInput,
    reconciler: BalanceReconciler,
) -> IncrementOutput:
    """Apply one streaming increment."""
    record, previous_total = reconciler.increment(
        guest_id=input_data.guest_id,
        session_id=input_data.session_id,
        amount_delta=input_data.amount_delta,
        asset_code=input_data.asset_code,
        asset_scale=input_data.asset_scale,
    )
    return IncrementOutput(
        record=record,
        previous_total=previous_total,
        new_total=record.total_received,
    )


async def run(
    input_data: RegisterUrlInput | PollInput | IncrementInput,
    reconciler: BalanceReconciler,
) -> RegisterUrlOutput | PollResult | IncrementOutput:
    """
    Run balance operation based on input type.

    This is the main entry point following the atomic component pattern.
    """
    if isinstance(input_data, RegisterUrlInput):
        return await run_register(input_data, reconciler)

    if isinstance(input_data, PollInput):
        return await run_poll(input_data, reconciler)

    if isinstance(input_data, IncrementInput):
        return run_increment(input_data, reconciler)

    raise TypeError(f"Unknown input type: {type(input_data)}")


# --- Configuration Loader ---


def load_config_from_rules(rules: Any) -> ReconcilerConfig:
    """
    Build ReconcilerConfig from loaded Rules.

    Args:
        rules: streamqa.rules.models.Rules instance

    Returns:
        ReconcilerConfig instance
    """
    credits = rules.credits
    return ReconcilerConfig(
        default_asset_code=credits.default_asset_code,
        default_asset_scale=credits.default_asset_scale,
        poll_timeout_seconds=credits.poll_timeout_seconds,
        incoming_payment_path=credits.incoming_payment_path,
    )
