"""
Credit gate - question credits derived from money received.

Credits are never stored. They are recomputed from the guest's total
received and the count of the guest's accepted questions:

    earned    = floor(total_received / question_price)
    available = max(0, earned - credits_used)

A question spends its credit by existing in the store with a status other
than pending_payment.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from streamqa.adapters.keyed_lock import KeyedLock
from streamqa.components.balance import record_key
from streamqa.domain.currency import convert_amount, format_amount, needs_conversion
from streamqa.domain.entities import AWAITING_PAYMENT, GuestBalance, Question

from .models import ConsumeCreditOutput, CreditsConfig, InsufficientCreditsError
from .ports import GuestPaymentRepoPort, LockPort, QuestionLookupPort, SessionLookupPort

logger = logging.getLogger(__name__)


# --- Pure functions ---


def compute_credits(total_received: int, question_price: int, credits_used: int) -> int:
    """Available question credits; never negative."""
    if question_price <= 0:
        return 0
    earned = total_received // question_price
    return max(0, earned - credits_used)


def compute_balance(total_received: int, question_price: int, credits_used: int) -> int:
    """Display balance: money received minus money spent on questions, floored at zero."""
    spent = credits_used * max(question_price, 0)
    return max(0, total_received - spent)


def count_credits_used(questions: Iterable[Question], guest_id: str) -> int:
    """Questions of this guest that have spent a credit."""
    return sum(1 for q in questions if q.status != AWAITING_PAYMENT and q.submitted_by(guest_id))


# --- Service ---


class CreditGate:
    """
    Credit gate service.

    check_and_consume_credit recomputes the balance and runs the optional
    commit inside the same per-(guest, session) lock the balance reconciler
    uses, so within one process the last credit can only be spent once.
    """

    def __init__(
        self,
        repo: GuestPaymentRepoPort,
        sessions: SessionLookupPort,
        questions: QuestionLookupPort,
        locks: LockPort | None = None,
        config: CreditsConfig | None = None,
    ) -> None:
        self._repo = repo
        self._sessions = sessions
        self._questions = questions
        self._locks = locks if locks is not None else KeyedLock()
        self._config = config or CreditsConfig()

    def _empty(self, guest_id: str, session_id: str, asset_code: str, asset_scale: int) -> GuestBalance:
        return GuestBalance(
            guest_id=guest_id,
            session_id=session_id,
            asset_code=asset_code,
            asset_scale=asset_scale,
        )

    def get_guest_balance(self, guest_id: str, session_id: str) -> GuestBalance:
        """
        Fresh balance for a guest, in session currency.

        An unknown session or a guest without a payment record yields a
        zero-valued balance.
        """
        session = self._sessions.get_session(session_id)
        if session is None:
            return self._empty(
                guest_id,
                session_id,
                self._config.default_asset_code,
                self._config.default_asset_scale,
            )

        credits_used = count_credits_used(
            self._questions.get_questions_by_session(session_id), guest_id
        )

        record = self._repo.get(guest_id, session_id)
        total = 0
        if record is not None:
            total = record.total_received
            if needs_conversion(
                record.asset_code, record.asset_scale, session.asset_code, session.asset_scale
            ):
                total = convert_amount(total, record.asset_scale, session.asset_scale)
                logger.info(
                    "[CREDIT CALC] Converting legacy currency data guest=%s session=%s "
                    "stored=%s converted=%s",
                    guest_id,
                    session_id,
                    format_amount(record.total_received, record.asset_code, record.asset_scale),
                    format_amount(total, session.asset_code, session.asset_scale),
                )

        return GuestBalance(
            guest_id=guest_id,
            session_id=session_id,
            balance=compute_balance(total, session.question_price, credits_used),
            total_received=total,
            question_credits=compute_credits(total, session.question_price, credits_used),
            credits_used=credits_used,
            asset_code=session.asset_code,
            asset_scale=session.asset_scale,
        )

    def check_and_consume_credit(
        self,
        guest_id: str,
        session_id: str,
        commit: Callable[[], Any] | None = None,
    ) -> ConsumeCreditOutput:
        """
        Require at least one credit, then run commit while still holding it.

        commit must not touch the reconciler for the same guest; the lock is
        not reentrant.

        Raises:
            InsufficientCreditsError: fewer than one credit available; commit
                is not called.
        """
        with self._locks.hold(record_key(guest_id, session_id)):
            balance = self.get_guest_balance(guest_id, session_id)
            if balance.question_credits < 1:
                logger.info(
                    "[CREDIT DENIED] Insufficient credits guest=%s session=%s available=%d total=%s",
                    guest_id,
                    session_id,
                    balance.question_credits,
                    format_amount(balance.total_received, balance.asset_code, balance.asset_scale),
                )
                raise InsufficientCreditsError(guest_id, session_id, balance.question_credits)

            committed = commit() if commit is not None else None

        logger.info(
            "[CREDIT SUCCESS] Credit check passed guest=%s session=%s credits_before=%d committed=%s",
            guest_id,
            session_id,
            balance.question_credits,
            commit is not None,
        )
        return ConsumeCreditOutput(balance=balance, committed=committed)
