"""
Payment verification port.

External interface for reading incoming-payment resources from the
payments network.

Key requirements:
- Reads are unauthenticated in the guest-credit flow (resources are
  advertised as publicly verifiable)
- A failed read returns None; it never raises to the caller
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from streamqa.domain.entities import ReceivedAmount

# --- Models ---


@dataclass(frozen=True)
class IncomingPaymentSnapshot:
    """
    Point-in-time view of one incoming payment.

    Attributes:
        url: The payment-reference URL that was read
        received_amount: Amount received so far (display string + currency),
            or None when the resource carried no usable amount
        completed: Whether the payment network marked the payment complete
        wallet_address: Receiving wallet, when reported
    """

    url: str
    received_amount: ReceivedAmount | None = None
    completed: bool = False
    wallet_address: str | None = None


# --- Port Interface ---


class PaymentVerifierPort(Protocol):
    """
    Port for verifying received amounts.

    Implementations:
    - OpenPaymentsVerifier: HTTP GET against the payment resource
    - StubPaymentVerifier: Canned snapshots (tests, local dev)
    """

    async def fetch(
        self, url: str, access_token: str | None = None
    ) -> IncomingPaymentSnapshot | None:
        """
        Fetch the current state of an incoming payment.

        Args:
            url: Payment-reference URL
            access_token: Optional bearer token (unused in the guest flow)

        Returns:
            Snapshot, or None when the resource could not be read.
        """
        ...
