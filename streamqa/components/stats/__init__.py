"""
Stats component.

Public API for session question counts and earnings.
"""

from ._impl import StatsService
from .component import load_config_from_rules, run
from .models import SessionStats, StatsConfig, StatsInput

__all__ = [
    "load_config_from_rules",
    "run",
    "SessionStats",
    "StatsConfig",
    "StatsInput",
    "StatsService",
]
