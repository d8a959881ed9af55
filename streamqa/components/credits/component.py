"""
Credits component - Question credit computation and gating.

Shell Layer - run_* entry points over CreditGate.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from streamqa.domain.entities import GuestBalance

from ._impl import CreditGate
from .models import BalanceInput, ConsumeCreditInput, ConsumeCreditOutput, CreditsConfig


def run_get_balance(input_data: BalanceInput, gate: CreditGate) -> GuestBalance:
    """Read a guest's balance (zero-valued when nothing is known)."""
    return gate.get_guest_balance(input_data.guest_id, input_data.session_id)


def run_consume(
    input_data: ConsumeCreditInput,
    gate: CreditGate,
    commit: Callable[[], Any] | None = None,
) -> ConsumeCreditOutput:
    """
    Gate a question submission.

    Raises InsufficientCreditsError when no credit is available.
    """
    return gate.check_and_consume_credit(input_data.guest_id, input_data.session_id, commit)


def run(
    input_data: BalanceInput | ConsumeCreditInput,
    gate: CreditGate,
) -> GuestBalance | ConsumeCreditOutput:
    """Run credits operation based on input type."""
    if isinstance(input_data, BalanceInput):
        return run_get_balance(input_data, gate)

    if isinstance(input_data, ConsumeCreditInput):
        return run_consume(input_data, gate)

    raise TypeError(f"Unknown input type: {type(input_data)}")


def load_config_from_rules(rules: Any) -> CreditsConfig:
    """Build CreditsConfig from loaded Rules."""
    return CreditsConfig(
        default_asset_code=rules.credits.default_asset_code,
        default_asset_scale=rules.credits.default_asset_scale,
    )
