"""
Credits component port definitions.

The gate reads the same guest payment records the balance component writes,
and shares its per-(guest, session) lock.
"""

from streamqa.components.balance.ports import GuestPaymentRepoPort, LockPort
from streamqa.core.ports.store import QuestionLookupPort, SessionLookupPort

__all__ = [
    "GuestPaymentRepoPort",
    "LockPort",
    "QuestionLookupPort",
    "SessionLookupPort",
]
