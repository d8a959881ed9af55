"""
Payment verifier stub adapter (dev/tests).

Stub implementation of PaymentVerifierPort that serves canned snapshots
instead of calling the payments network.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from streamqa.core.ports.payment import IncomingPaymentSnapshot, PaymentVerifierPort
from streamqa.domain.entities import ReceivedAmount

logger = logging.getLogger(__name__)


@dataclass
class StubPaymentVerifier:
    """
    Stub verifier for dev and tests.

    Unknown URLs read as "no data" (None), like a 404 from the network.
    URLs registered with fail_url() raise, to exercise error isolation.

    This adapter satisfies the PaymentVerifierPort protocol.
    """

    _snapshots: dict[str, IncomingPaymentSnapshot] = field(default_factory=dict)
    _failing: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    async def fetch(
        self, url: str, access_token: str | None = None
    ) -> IncomingPaymentSnapshot | None:
        self.calls.append(url)
        logger.debug("StubPaymentVerifier.fetch: url=%s", url)

        if url in self._failing:
            raise ConnectionError(f"stub failure for {url}")
        return self._snapshots.get(url)

    # --- Testing Helpers ---

    def set_received(
        self,
        url: str,
        value: str,
        asset_code: str = "USD",
        asset_scale: int = 2,
        completed: bool = False,
    ) -> None:
        """Serve a receivedAmount for url."""
        self._snapshots[url] = IncomingPaymentSnapshot(
            url=url,
            received_amount=ReceivedAmount(
                value=value, asset_code=asset_code, asset_scale=asset_scale
            ),
            completed=completed,
        )

    def fail_url(self, url: str) -> None:
        """Make fetches of url raise."""
        self._failing.add(url)


# Verify protocol compliance at module load time
def _verify_protocol_compliance() -> None:
    """Verify StubPaymentVerifier satisfies PaymentVerifierPort protocol."""
    verifier: PaymentVerifierPort = StubPaymentVerifier()
    _ = verifier.fetch


_verify_protocol_compliance()
