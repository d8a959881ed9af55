"""
Balance component input/output models.

Inputs are frozen dataclasses consumed by the run_* entry points; outputs
carry the updated GuestPaymentRecord plus whatever the caller needs to
report the change.
"""

from __future__ import annotations

from dataclasses import dataclass

from streamqa.domain.entities import GuestPaymentRecord

# --- Errors ---


class InvalidAmountError(ValueError):
    """Raised for amounts the reconciler refuses to apply."""

    def __init__(self, message: str, amount: int | None = None) -> None:
        self.amount = amount
        super().__init__(message)


class InvalidPaymentUrlError(ValueError):
    """Raised when a payment-reference URL is not an absolute http(s) URL."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Not an http(s) payment URL: {url!r}")


# --- Registration ---


@dataclass(frozen=True)
class RegisterUrlInput:
    """Input for registering a payment-reference URL."""

    guest_id: str
    session_id: str
    url: str
    asset_code: str
    asset_scale: int


@dataclass(frozen=True)
class RegisterUrlOutput:
    """Output from URL registration."""

    record: GuestPaymentRecord
    newly_registered: bool
    # True when the first-registration verification read returned data
    verified: bool = False


# --- Polling ---


@dataclass(frozen=True)
class PollInput:
    """Input for polling every registered URL of a guest."""

    guest_id: str
    session_id: str


@dataclass(frozen=True)
class PollResult:
    """
    Outcome of one poll.

    total_received is the stored total after reconciliation; polled_total
    is the max-of-URLs aggregate the poll observed. Both are in session
    currency.
    """

    total_received: int
    previous_total: int
    updated: bool
    polled_total: int = 0
    urls_polled: int = 0
    urls_failed: int = 0
    timed_out: bool = False


# --- Streaming increments ---


@dataclass(frozen=True)
class IncrementInput:
    """Input for applying one streaming increment."""

    guest_id: str
    session_id: str
    amount_delta: int
    asset_code: str
    asset_scale: int


@dataclass(frozen=True)
class IncrementOutput:
    """Output from a streaming increment."""

    record: GuestPaymentRecord
    previous_total: int
    new_total: int


# --- Configuration ---


@dataclass(frozen=True)
class ReconcilerConfig:
    """Reconciler configuration from rules."""

    default_asset_code: str = "USD"
    default_asset_scale: int = 2
    poll_timeout_seconds: float = 5.0
    incoming_payment_path: str = "/incoming-payments/"
