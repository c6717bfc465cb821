"""MCP tools for daily wellness goals."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from vitalgoals.domains.goals.domain_logic.goal_service import GoalService

from vitalgoals.domains.goals.domain_logic.fallback_generator import FallbackGoalGenerator

logger = logging.getLogger(__name__)


def _validate_user_id(user_id: str | None) -> str:
    if user_id is None or not str(user_id).strip():
        raise ValueError("user_id must be a non-empty string")
    return str(user_id).strip()


def register_goal_tools(mcp: FastMCP, service: GoalService) -> None:
    """Register goal calculation and diagnostics tools on the MCP server."""

    @mcp.tool
    async def calculate_daily_goals(user_id: str) -> str:
        """Calculate personalized daily steps, calories and heart points goals.

        Goals follow WHO physical activity guidelines and are always within
        medical safety bounds. When the profile is incomplete or invalid,
        safe default goals are returned with an explanation.

        Args:
            user_id: The user whose goals to calculate.
        """
        user_id = _validate_user_id(user_id)
        start_time = time.monotonic()
        goals = await service.calculate_goals(user_id)
        elapsed_ms = (time.monotonic() - start_time) * 1000

        payload = goals.to_dict()
        payload["summary"] = goals.summary()
        payload["message"] = goals.source_message()
        payload["duration_ms"] = round(elapsed_ms, 1)
        if goals.is_fallback:
            payload["explanation"] = FallbackGoalGenerator.explain(goals.fallback_reason)
        return json.dumps(payload)

    @mcp.tool
    async def has_valid_goals(user_id: str) -> str:
        """Check whether the user has fresh, personalized goals on record.

        Args:
            user_id: The user to check.
        """
        user_id = _validate_user_id(user_id)
        valid = await service.has_valid_goals(user_id)
        return json.dumps({"user_id": user_id, "has_valid_goals": valid})

    @mcp.tool
    async def goal_calculation_breakdown(user_id: str) -> str:
        """Explain step by step how the user's goals are calculated.

        Args:
            user_id: The user whose calculation to explain.
        """
        user_id = _validate_user_id(user_id)
        breakdown = await service.get_calculation_breakdown(user_id)
        if breakdown is None:
            return json.dumps({
                "status": "unavailable",
                "user_id": user_id,
                "message": (
                    "No personalized calculation is possible for this profile. "
                    "Complete the profile to see a breakdown."
                ),
            })
        return json.dumps({"status": "ok", "user_id": user_id, **breakdown.to_dict()})

    @mcp.tool
    def performance_insights() -> str:
        """Report calculation performance metrics and advisory insights."""
        insights = service.get_performance_insights()
        metrics = service.get_performance_metrics()
        return json.dumps({
            "metrics": metrics.to_dict(),
            "insights": [i.to_dict() for i in insights],
        })

    @mcp.tool
    def reset_performance_metrics() -> str:
        """Reset all calculation performance counters."""
        service.reset_metrics()
        return json.dumps({"status": "reset"})

    @mcp.tool
    def cache_stats() -> str:
        """Report result cache size, capacity and hit rate."""
        swept = service.sweep_expired_cache()
        stats = service.cache_stats().to_dict()
        stats["expired_entries_swept"] = swept
        return json.dumps(stats)
