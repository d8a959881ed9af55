"""
Balance component port definitions.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from streamqa.core.ports.clock import ClockPort
from streamqa.core.ports.payment import PaymentVerifierPort
from streamqa.core.ports.store import SessionLookupPort
from streamqa.domain.entities import GuestPaymentRecord


class GuestPaymentRepoPort(Protocol):
    """Repository interface for guest payment records."""

    def get(self, guest_id: str, session_id: str) -> GuestPaymentRecord | None:
        """Get the record for (guest, session), or None if none exists yet."""
        ...

    def save(self, record: GuestPaymentRecord) -> GuestPaymentRecord:
        """Create or replace the record (upsert)."""
        ...

    def list_by_session(self, session_id: str) -> list[GuestPaymentRecord]:
        """List every guest record belonging to a session."""
        ...


class LockPort(Protocol):
    """Per-key mutual exclusion."""

    def hold(self, key: str) -> AbstractContextManager[None]:
        """Hold the lock for key for the duration of the with-block."""
        ...


__all__ = [
    "ClockPort",
    "GuestPaymentRepoPort",
    "LockPort",
    "PaymentVerifierPort",
    "SessionLookupPort",
]
