"""
Credits component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from streamqa.domain.entities import GuestBalance

# --- Errors ---


class InsufficientCreditsError(Exception):
    """
    Raised when a guest has no question credit left.

    An expected business outcome, not a fault: the guest can pay more and retry.
    """

    def __init__(self, guest_id: str, session_id: str, available: int = 0) -> None:
        self.guest_id = guest_id
        self.session_id = session_id
        self.available = available
        super().__init__(
            f"Insufficient credits for guest {guest_id} in session {session_id}: "
            f"{available} available"
        )


# --- Inputs ---


@dataclass(frozen=True)
class BalanceInput:
    """Input for reading a guest's balance."""

    guest_id: str
    session_id: str


@dataclass(frozen=True)
class ConsumeCreditInput:
    """Input for the question-submission credit check."""

    guest_id: str
    session_id: str


# --- Outputs ---


@dataclass(frozen=True)
class ConsumeCreditOutput:
    """
    Result of a passed credit check.

    balance is the view before the credit was spent; committed is whatever
    the commit callable returned (None when no commit was given).
    """

    balance: GuestBalance
    committed: Any = None


# --- Configuration ---


@dataclass(frozen=True)
class CreditsConfig:
    """Credits configuration from rules."""

    default_asset_code: str = "USD"
    default_asset_scale: int = 2
