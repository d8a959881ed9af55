"""
BalanceReconciler - guest payment state for one (guest, session) pair.

Maintains GuestPaymentRecord.total_received as a monotonic measure of money
received, fed by two independent paths:

- Ratchet (poll snapshots): total = max(stored, incoming). Snapshots are
  absolute and idempotent, so a stale report can never lower the total.
- Increment (streaming events): total = stored + delta. Each event is new
  money; the event source reports every increment at most once.

Every amount is normalised to the session's currency before it touches the
stored total, and the record's asset_code/asset_scale are forced to the
session currency on every write, so legacy mixed-currency records heal on
their next update. Conversion assumes a 1:1 rate between asset codes.
"""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlparse

from streamqa.adapters.clock import SystemClock
from streamqa.adapters.keyed_lock import KeyedLock
from streamqa.core.ports.payment import IncomingPaymentSnapshot
from streamqa.domain.currency import (
    convert_amount,
    format_amount,
    needs_conversion,
    parse_display_value,
)
from streamqa.domain.entities import GuestPaymentRecord

from .models import (
    InvalidAmountError,
    InvalidPaymentUrlError,
    PollResult,
    ReconcilerConfig,
    RegisterUrlOutput,
)
from .ports import (
    ClockPort,
    GuestPaymentRepoPort,
    LockPort,
    PaymentVerifierPort,
    SessionLookupPort,
)

logger = logging.getLogger(__name__)


def record_key(guest_id: str, session_id: str) -> str:
    return f"{guest_id}:{session_id}"


def snapshot_units(snapshot: IncomingPaymentSnapshot) -> tuple[int, str, int] | None:
    """
    Smallest units received according to a snapshot, in the snapshot's own
    currency, as (units, asset_code, asset_scale).

    Returns None when the snapshot carried no usable amount.
    """
    amount = snapshot.received_amount
    if amount is None:
        return None
    units = parse_display_value(amount.value, amount.asset_scale)
    return units, amount.asset_code, amount.asset_scale


class BalanceReconciler:
    """
    Balance reconciler.

    Stateless between calls apart from what the repository persists.
    Record read-modify-write runs under a per-(guest, session) lock; network
    reads happen outside the lock. The async paths hand storage work and lock
    waits to asyncio.to_thread so the event loop keeps running.
    """

    def __init__(
        self,
        repo: GuestPaymentRepoPort,
        sessions: SessionLookupPort,
        verifier: PaymentVerifierPort,
        clock: ClockPort | None = None,
        locks: LockPort | None = None,
        config: ReconcilerConfig | None = None,
    ) -> None:
        self._repo = repo
        self._sessions = sessions
        self._verifier = verifier
        self._clock = clock if clock is not None else SystemClock()
        self._locks = locks if locks is not None else KeyedLock()
        self._config = config or ReconcilerConfig()

    # --- Currency ---

    def session_currency(
        self,
        session_id: str,
        asset_code: str | None = None,
        asset_scale: int | None = None,
    ) -> tuple[str, int]:
        """
        Currency all balances of a session are expressed in.

        Falls back to the caller's currency, then to the configured default,
        when the session is unknown.
        """
        session = self._sessions.get_session(session_id)
        if session is not None:
            return session.asset_code, session.asset_scale
        return (
            asset_code or self._config.default_asset_code,
            asset_scale if asset_scale is not None else self._config.default_asset_scale,
        )

    def _to_session_units(
        self,
        amount: int,
        asset_code: str,
        asset_scale: int,
        target_code: str,
        target_scale: int,
        *,
        guest_id: str,
        session_id: str,
    ) -> int:
        if not needs_conversion(asset_code, asset_scale, target_code, target_scale):
            return amount
        converted = convert_amount(amount, asset_scale, target_scale)
        logger.info(
            "[BALANCE UPDATE] Converting payment currency guest=%s session=%s "
            "from=%s to=%s (1:1 rate assumed)",
            guest_id,
            session_id,
            format_amount(amount, asset_code, asset_scale),
            format_amount(converted, target_code, target_scale),
        )
        return converted

    def _normalize(self, record: GuestPaymentRecord, target_code: str, target_scale: int) -> None:
        """Re-express a record's stored totals in the target currency, in place."""
        if not needs_conversion(record.asset_code, record.asset_scale, target_code, target_scale):
            return
        logger.info(
            "[BALANCE UPDATE] Normalising stored record guest=%s session=%s %s/%d -> %s/%d",
            record.guest_id,
            record.session_id,
            record.asset_code,
            record.asset_scale,
            target_code,
            target_scale,
        )
        record.total_received = convert_amount(record.total_received, record.asset_scale, target_scale)
        record.verified_total = convert_amount(record.verified_total, record.asset_scale, target_scale)
        record.streamed_total = convert_amount(record.streamed_total, record.asset_scale, target_scale)
        record.asset_code = target_code
        record.asset_scale = target_scale

    def _load_or_create(
        self, guest_id: str, session_id: str, asset_code: str, asset_scale: int
    ) -> GuestPaymentRecord:
        record = self._repo.get(guest_id, session_id)
        if record is None:
            record = GuestPaymentRecord(
                guest_id=guest_id,
                session_id=session_id,
                asset_code=asset_code,
                asset_scale=asset_scale,
                last_updated=self._clock.now_utc(),
            )
        return record

    # --- Update paths ---

    def ratchet(
        self,
        guest_id: str,
        session_id: str,
        total_received: int,
        asset_code: str,
        asset_scale: int,
    ) -> GuestPaymentRecord:
        """
        Apply an absolute snapshot: stored total becomes max(stored, incoming).

        Not exposed to clients; callers are the poll and the
        registration-time verification.
        """
        if total_received < 0:
            raise InvalidAmountError("Snapshot total must be non-negative", total_received)
        if asset_scale < 0:
            raise InvalidAmountError("Asset scale must be non-negative", asset_scale)

        target_code, target_scale = self.session_currency(session_id, asset_code, asset_scale)
        incoming = self._to_session_units(
            total_received,
            asset_code,
            asset_scale,
            target_code,
            target_scale,
            guest_id=guest_id,
            session_id=session_id,
        )

        with self._locks.hold(record_key(guest_id, session_id)):
            record = self._load_or_create(guest_id, session_id, target_code, target_scale)
            self._normalize(record, target_code, target_scale)
            record.total_received = max(record.total_received, incoming)
            record.verified_total = max(record.verified_total, incoming)
            record.last_updated = self._clock.now_utc()
            return self._repo.save(record)

    def increment(
        self,
        guest_id: str,
        session_id: str,
        amount_delta: int,
        asset_code: str,
        asset_scale: int,
    ) -> tuple[GuestPaymentRecord, int]:
        """
        Apply a streaming delta: stored total becomes stored + delta.

        Returns:
            Tuple of (updated record, total before the increment), both in
            session currency.
        """
        if amount_delta < 0:
            raise InvalidAmountError("Streaming increment must be non-negative", amount_delta)
        if asset_scale < 0:
            raise InvalidAmountError("Asset scale must be non-negative", asset_scale)

        target_code, target_scale = self.session_currency(session_id, asset_code, asset_scale)
        delta = self._to_session_units(
            amount_delta,
            asset_code,
            asset_scale,
            target_code,
            target_scale,
            guest_id=guest_id,
            session_id=session_id,
        )

        with self._locks.hold(record_key(guest_id, session_id)):
            record = self._load_or_create(guest_id, session_id, target_code, target_scale)
            self._normalize(record, target_code, target_scale)
            previous_total = record.total_received
            record.total_received = previous_total + delta
            record.streamed_total += delta
            record.last_updated = self._clock.now_utc()
            saved = self._repo.save(record)

        logger.info(
            "[PAYMENT STREAM] Incremented balance guest=%s session=%s delta=%s total=%s",
            guest_id,
            session_id,
            format_amount(delta, target_code, target_scale),
            format_amount(saved.total_received, target_code, target_scale),
        )
        return saved, previous_total

    # --- Verification ---

    def is_payment_url(self, url: str) -> bool:
        return self._config.incoming_payment_path in url

    def _warn_invalid_url(self, guest_id: str, session_id: str, url: str) -> None:
        logger.warning(
            "[PAYMENT WARNING] Invalid incoming payment URL format guest=%s session=%s url=%s",
            guest_id,
            session_id,
            url,
        )

    def _add_url(
        self, guest_id: str, session_id: str, url: str, asset_code: str, asset_scale: int
    ) -> tuple[GuestPaymentRecord, bool]:
        target_code, target_scale = self.session_currency(session_id, asset_code, asset_scale)

        with self._locks.hold(record_key(guest_id, session_id)):
            record = self._load_or_create(guest_id, session_id, target_code, target_scale)
            self._normalize(record, target_code, target_scale)
            newly_registered = url not in record.incoming_payment_urls
            if newly_registered:
                record.incoming_payment_urls.append(url)
                record.last_updated = self._clock.now_utc()
            return self._repo.save(record), newly_registered

    async def _fetch_safely(self, url: str) -> IncomingPaymentSnapshot | None:
        """Read one URL; any failure is logged and reads as no data."""
        try:
            return await self._verifier.fetch(url)
        except Exception:
            logger.exception("[PAYMENT ERROR] Failed to poll incoming payment %s", url)
            return None

    async def register_incoming_payment_url(
        self,
        guest_id: str,
        session_id: str,
        url: str,
        asset_code: str,
        asset_scale: int,
    ) -> RegisterUrlOutput:
        """
        Add url to the guest's payment URLs (idempotent).

        On first registration the URL is verified once straight away so
        early balance movement shows up before the next poll cycle. URLs the
        poll would skip are registered but not verified.

        Storage work runs in a worker thread; the per-key lock may be held by
        a synchronous caller such as the credit gate.
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidPaymentUrlError(url)

        record, newly_registered = await asyncio.to_thread(
            self._add_url, guest_id, session_id, url, asset_code, asset_scale
        )

        logger.info(
            "[PAYMENT EVENT] Registered incoming payment URL guest=%s session=%s new=%s tracked=%d",
            guest_id,
            session_id,
            newly_registered,
            len(record.incoming_payment_urls),
        )

        if not newly_registered:
            return RegisterUrlOutput(record=record, newly_registered=False)

        if not self.is_payment_url(url):
            self._warn_invalid_url(guest_id, session_id, url)
            return RegisterUrlOutput(record=record, newly_registered=True)

        snapshot = await self._fetch_safely(url)
        if snapshot is None:
            return RegisterUrlOutput(record=record, newly_registered=True)

        received = snapshot_units(snapshot)
        if received is not None and received[0] > 0:
            units, code, scale = received
            record = await asyncio.to_thread(self.ratchet, guest_id, session_id, units, code, scale)
        return RegisterUrlOutput(record=record, newly_registered=True, verified=True)

    async def poll_and_reconcile(self, guest_id: str, session_id: str) -> PollResult:
        """
        Poll every registered URL and ratchet the total to the best snapshot.

        The aggregate is the maximum single-URL amount: multiple URLs of one
        guest are treated as alternative channels for the same payment.
        The whole poll is bounded by poll_timeout_seconds; unfinished reads
        are cancelled and the finished ones still count.
        """
        record = await asyncio.to_thread(self._repo.get, guest_id, session_id)
        if record is None:
            return PollResult(total_received=0, previous_total=0, updated=False)

        target_code, target_scale = await asyncio.to_thread(
            self.session_currency, session_id, record.asset_code, record.asset_scale
        )
        previous_total = convert_amount(record.total_received, record.asset_scale, target_scale)
        if not record.incoming_payment_urls:
            return PollResult(
                total_received=previous_total, previous_total=previous_total, updated=False
            )

        urls = []
        skipped = 0
        for url in record.incoming_payment_urls:
            if self.is_payment_url(url):
                urls.append(url)
            else:
                self._warn_invalid_url(guest_id, session_id, url)
                skipped += 1

        logger.info(
            "[PAYMENT POLL] Starting payment poll guest=%s session=%s urls=%d current=%s",
            guest_id,
            session_id,
            len(urls),
            format_amount(previous_total, target_code, target_scale),
        )

        snapshots: list[IncomingPaymentSnapshot | None] = []
        timed_out = False
        if urls:
            tasks = [asyncio.create_task(self._fetch_safely(url)) for url in urls]
            done, pending = await asyncio.wait(tasks, timeout=self._config.poll_timeout_seconds)
            if pending:
                timed_out = True
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
                logger.warning(
                    "[PAYMENT POLL] Poll timed out guest=%s session=%s unfinished=%d",
                    guest_id,
                    session_id,
                    len(pending),
                )
            snapshots = [task.result() for task in tasks if task in done]

        polled_total = 0
        failed = skipped + (len(urls) - len(snapshots))
        for snapshot in snapshots:
            if snapshot is None:
                failed += 1
                continue
            received = snapshot_units(snapshot)
            if received is None:
                logger.info(
                    "[PAYMENT POLL] No payment received yet guest=%s session=%s url=%s",
                    guest_id,
                    session_id,
                    snapshot.url,
                )
                continue
            units, code, scale = received
            converted = self._to_session_units(
                units,
                code,
                scale,
                target_code,
                target_scale,
                guest_id=guest_id,
                session_id=session_id,
            )
            polled_total = max(polled_total, converted)

        if polled_total > previous_total:
            logger.info(
                "[PAYMENT EVENT] New payment detected guest=%s session=%s previous=%s new=%s",
                guest_id,
                session_id,
                format_amount(previous_total, target_code, target_scale),
                format_amount(polled_total, target_code, target_scale),
            )
            updated_record = await asyncio.to_thread(
                self.ratchet, guest_id, session_id, polled_total, target_code, target_scale
            )
            total_received = updated_record.total_received
        else:
            logger.info(
                "[PAYMENT POLL] No new payments detected guest=%s session=%s",
                guest_id,
                session_id,
            )
            total_received = previous_total

        return PollResult(
            total_received=total_received,
            previous_total=previous_total,
            updated=total_received > previous_total,
            polled_total=polled_total,
            urls_polled=len(urls),
            urls_failed=failed,
            timed_out=timed_out,
        )
