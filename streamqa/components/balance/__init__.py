"""
Balance component.

Public API for reconciling guest payment evidence into a monotonic
total received per (guest, session).
"""

from ._impl import BalanceReconciler, record_key, snapshot_units
from .component import (
    load_config_from_rules,
    run,
    run_increment,
    run_poll,
    run_register,
)
from .models import (
    IncrementInput,
    IncrementOutput,
    InvalidAmountError,
    InvalidPaymentUrlError,
    PollInput,
    PollResult,
    ReconcilerConfig,
    RegisterUrlInput,
    RegisterUrlOutput,
)
from .ports import GuestPaymentRepoPort, LockPort

__all__ = [
    # Functions
    "load_config_from_rules",
    "record_key",
    "run",
    "run_increment",
    "run_poll",
    "run_register",
    "snapshot_units",
    # Service
    "BalanceReconciler",
    # Models
    "IncrementInput",
    "IncrementOutput",
    "InvalidAmountError",
    "InvalidPaymentUrlError",
    "PollInput",
    "PollResult",
    "ReconcilerConfig",
    "RegisterUrlInput",
    "RegisterUrlOutput",
    # Ports
    "GuestPaymentRepoPort",
    "LockPort",
]
