"""
Stats component port definitions.
"""

from streamqa.components.balance.ports import GuestPaymentRepoPort
from streamqa.core.ports.store import QuestionLookupPort, SessionLookupPort

__all__ = [
    "GuestPaymentRepoPort",
    "QuestionLookupPort",
    "SessionLookupPort",
]
