"""
Credits component.

Public API for deriving question credits from money received and gating
question submission on them.
"""

from ._impl import CreditGate, compute_balance, compute_credits, count_credits_used
from .component import load_config_from_rules, run, run_consume, run_get_balance
from .models import (
    BalanceInput,
    ConsumeCreditInput,
    ConsumeCreditOutput,
    CreditsConfig,
    InsufficientCreditsError,
)

__all__ = [
    # Functions
    "compute_balance",
    "compute_credits",
    "count_credits_used",
    "load_config_from_rules",
    "run",
    "run_consume",
    "run_get_balance",
    # Service
    "CreditGate",
    # Models
    "BalanceInput",
    "ConsumeCreditInput",
    "ConsumeCreditOutput",
    "CreditsConfig",
    "InsufficientCreditsError",
]
