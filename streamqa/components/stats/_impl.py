"""
Session stats - question counts and money earned for a host dashboard.
"""

from __future__ import annotations

import asyncio
import logging

from streamqa.domain.currency import convert_amount
from streamqa.domain.entities import AWAITING_PAYMENT

from .models import SessionStats, StatsConfig
from .ports import GuestPaymentRepoPort, QuestionLookupPort, SessionLookupPort

logger = logging.getLogger(__name__)


class StatsService:
    """Computes SessionStats from the question store and guest payment records."""

    def __init__(
        self,
        repo: GuestPaymentRepoPort,
        sessions: SessionLookupPort,
        questions: QuestionLookupPort,
        config: StatsConfig | None = None,
    ) -> None:
        self._repo = repo
        self._sessions = sessions
        self._questions = questions
        self._config = config or StatsConfig()

    def total_earned(self, session_id: str, asset_scale: int) -> int:
        """Sum of total_received over every guest of the session."""
        total = 0
        for record in self._repo.list_by_session(session_id):
            total += convert_amount(record.total_received, record.asset_scale, asset_scale)
        return total

    async def get_session_stats(self, session_id: str) -> SessionStats:
        """
        Summarise a session.

        The earnings scan is bounded by timeout_seconds; on timeout or a
        storage failure total_earned falls back to 0.
        """
        session = self._sessions.get_session(session_id)
        if session is None:
            asset_code = self._config.default_asset_code
            asset_scale = self._config.default_asset_scale
        else:
            asset_code, asset_scale = session.asset_code, session.asset_scale

        questions = self._questions.get_questions_by_session(session_id)
        total_questions = sum(1 for q in questions if q.status != AWAITING_PAYMENT)
        answered_questions = sum(1 for q in questions if q.status == "answered")

        earned = 0
        unavailable = False
        try:
            earned = await asyncio.wait_for(
                asyncio.to_thread(self.total_earned, session_id, asset_scale),
                timeout=self._config.timeout_seconds,
            )
        except TimeoutError:
            logger.warning(
                "[STATS] Earnings scan timed out session=%s after %.1fs",
                session_id,
                self._config.timeout_seconds,
            )
            unavailable = True
        except Exception:
            logger.exception("[STATS] Earnings scan failed session=%s", session_id)
            unavailable = True

        return SessionStats(
            session_id=session_id,
            total_questions=total_questions,
            answered_questions=answered_questions,
            total_earned=earned,
            asset_code=asset_code,
            asset_scale=asset_scale,
            earnings_unavailable=unavailable,
        )
