"""
Open Payments incoming-payment reader.

Reads publicly verifiable incoming-payment resources over HTTP and turns
them into IncomingPaymentSnapshot values. Every failure mode (non-2xx,
network error, undecodable body) collapses to None so a poll over many
URLs can carry on with the rest.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from streamqa.core.ports.payment import IncomingPaymentSnapshot
from streamqa.domain.entities import ReceivedAmount

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 3.0


def parse_received_amount(data: dict[str, Any]) -> ReceivedAmount | None:
    """Extract receivedAmount, tolerating missing or malformed fields."""
    raw = data.get("receivedAmount")
    if not isinstance(raw, dict):
        return None
    try:
        return ReceivedAmount.model_validate(raw)
    except ValidationError:
        logger.warning("[PAYMENT WARNING] Malformed receivedAmount: %r", raw)
        return None


class OpenPaymentsVerifier:
    """
    HTTP payment verifier.

    A shared httpx.AsyncClient can be injected (tests pass one built on
    httpx.MockTransport); otherwise a client is opened per fetch.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._client = client
        self._timeout = request_timeout

    async def fetch(
        self, url: str, access_token: str | None = None
    ) -> IncomingPaymentSnapshot | None:
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        try:
            if self._client is not None:
                response = await self._client.get(url, headers=headers, timeout=self._timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url, headers=headers, timeout=self._timeout)
        except httpx.HTTPError as e:
            logger.warning("[PAYMENT WARNING] Failed to fetch incoming payment %s: %s", url, e)
            return None

        if response.status_code != 200:
            logger.warning(
                "[PAYMENT WARNING] Failed to fetch incoming payment %s: %s %s",
                url,
                response.status_code,
                response.reason_phrase,
            )
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("[PAYMENT WARNING] Incoming payment %s returned non-JSON body", url)
            return None
        if not isinstance(data, dict):
            logger.warning("[PAYMENT WARNING] Incoming payment %s returned %s", url, type(data).__name__)
            return None

        wallet_address = data.get("walletAddress")
        return IncomingPaymentSnapshot(
            url=url,
            received_amount=parse_received_amount(data),
            completed=data.get("completed") is True,
            wallet_address=wallet_address if isinstance(wallet_address, str) else None,
        )
