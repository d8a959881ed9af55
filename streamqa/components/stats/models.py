"""
Stats component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StatsInput:
    """Input for a session earnings summary."""

    session_id: str


@dataclass(frozen=True)
class SessionStats:
    """
    Earnings summary for one session.

    total_earned is in the session currency (smallest units).
    """

    session_id: str
    total_questions: int = 0
    answered_questions: int = 0
    total_earned: int = 0
    asset_code: str = "USD"
    asset_scale: int = 2
    # True when the earnings scan failed or ran out of time
    earnings_unavailable: bool = False


@dataclass(frozen=True)
class StatsConfig:
    """Stats configuration from rules."""

    timeout_seconds: float = 5.0
    default_asset_code: str = "USD"
    default_asset_scale: int = 2
