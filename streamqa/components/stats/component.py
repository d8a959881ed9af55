"""
Stats component - Session earnings summary.

Shell Layer - run entry point over StatsService.
"""

from __future__ import annotations

from typing import Any

from ._impl import StatsService
from .models import SessionStats, StatsConfig, StatsInput


async def run(input_data: StatsInput, service: StatsService) -> SessionStats:
    """Summarise one session."""
    return await service.get_session_stats(input_data.session_id)


def load_config_from_rules(rules: Any) -> StatsConfig:
    """Build StatsConfig from loaded Rules."""
    return StatsConfig(
        timeout_seconds=rules.credits.stats_timeout_seconds,
        default_asset_code=rules.credits.default_asset_code,
        default_asset_scale=rules.credits.default_asset_scale,
    )
