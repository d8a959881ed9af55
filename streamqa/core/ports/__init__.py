# streamqa: Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from streamqa.core.ports.clock import ClockPort
from streamqa.core.ports.payment import IncomingPaymentSnapshot, PaymentVerifierPort
from streamqa.core.ports.storage import KeyValuePort, NotAnIntegerError, StorageError
from streamqa.core.ports.store import QuestionLookupPort, SessionLookupPort

__all__ = [
    # Clock
    "ClockPort",
    # Payment verification
    "IncomingPaymentSnapshot",
    "PaymentVerifierPort",
    # Storage
    "KeyValuePort",
    "NotAnIntegerError",
    "StorageError",
    # Sessions / questions
    "QuestionLookupPort",
    "SessionLookupPort",
]
