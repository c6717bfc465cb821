"""Goal service: the entry point used by tools and other callers.

Fetches the user's profile (with retry), runs the calculation orchestrator,
and hands the result to the goal store. Every public calculation method
returns goals; failures degrade to fallback goals, never to exceptions.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from vitalgoals.core.cache.result_cache import CacheStats
from vitalgoals.core.monitoring.performance import PerformanceInsight, PerformanceMetrics
from vitalgoals.domains.goals.connectors import GoalStore, ProfileProvider
from vitalgoals.domains.goals.domain_logic.goal_models import (
    BiometricProfile,
    DailyGoals,
    goals_within_bounds,
)
from vitalgoals.domains.goals.domain_logic.input_validator import is_valid_for_calculation
from vitalgoals.domains.goals.domain_logic.orchestrator import (
    GoalCalculationBreakdown,
    GoalCalculationOrchestrator,
)

logger = logging.getLogger(__name__)

# Profile fields that change the calculated goals
GOAL_AFFECTING_FIELDS = ("age", "birth_date", "gender", "height_cm", "weight_kg", "activity_level")

NEW_PROFILE = "New profile created"
BECAME_VALID = "Profile became valid for calculation"
BECAME_INVALID = "Profile became invalid for calculation"


def detect_recalculation_trigger(
    old: BiometricProfile | None,
    new: BiometricProfile,
) -> str | None:
    """Reason the goals for ``new`` must be recalculated, or None if unchanged."""
    if old is None:
        return NEW_PROFILE

    old_valid = is_valid_for_calculation(old)
    new_valid = is_valid_for_calculation(new)
    if not old_valid and new_valid:
        return BECAME_VALID
    if old_valid and not new_valid:
        return BECAME_INVALID
    if not new_valid:
        return None

    changed = [f for f in GOAL_AFFECTING_FIELDS if getattr(old, f) != getattr(new, f)]
    if changed:
        return f"Profile fields changed: {', '.join(changed)}"
    return None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GoalService:
    """Calculates, stores and reports on daily goals for users."""

    def __init__(
        self,
        profile_provider: ProfileProvider,
        goal_store: GoalStore | None = None,
        orchestrator: GoalCalculationOrchestrator | None = None,
        *,
        freshness_hours: float = 24,
        fetch_attempts: int = 3,
        retry_initial_delay_ms: int = 500,
        retry_max_delay_ms: int = 4000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if fetch_attempts < 1:
            raise ValueError("fetch_attempts must be at least 1")
        self._profiles = profile_provider
        self._store = goal_store
        self._orchestrator = orchestrator or GoalCalculationOrchestrator()
        self._freshness = timedelta(hours=freshness_hours)
        self._fetch_attempts = fetch_attempts
        self._initial_delay_ms = retry_initial_delay_ms
        self._max_delay_ms = retry_max_delay_ms
        self._sleep = sleep
        self._clock = clock

    @property
    def orchestrator(self) -> GoalCalculationOrchestrator:
        return self._orchestrator

    # ------------------------------------------------------------------
    # Calculation
    # ------------------------------------------------------------------

    async def calculate_goals(self, user_id: str) -> DailyGoals:
        """Goals for ``user_id``. Falls back to safe defaults on any failure."""
        profile = await self._fetch_profile(user_id)
        goals = await self._orchestrator.calculate(profile, user_id=user_id)
        await self._save(goals)
        return goals

    async def on_profile_updated(
        self,
        old: BiometricProfile | None,
        new: BiometricProfile,
    ) -> DailyGoals | None:
        """Recalculate only when the update affects the goals."""
        reason = detect_recalculation_trigger(old, new)
        if reason is None:
            logger.debug("Profile update for %s does not affect goals", new.user_id)
            return None
        logger.info("Recalculating goals for %s: %s", new.user_id, reason)
        goals = await self._orchestrator.calculate(new, user_id=new.user_id)
        await self._save(goals)
        return goals

    async def has_valid_goals(self, user_id: str) -> bool:
        """True if stored, personalized goals exist and are still fresh."""
        if self._store is None:
            return False
        goals = await self._store.get_goals(user_id)
        if goals is None or goals.is_fallback:
            return False
        if not goals_within_bounds(goals.steps_goal, goals.calories_goal, goals.heart_points_goal):
            return False
        return self._clock() - goals.calculated_at < self._freshness

    async def get_calculation_breakdown(self, user_id: str) -> GoalCalculationBreakdown | None:
        profile = await self._fetch_profile(user_id)
        return self._orchestrator.breakdown(profile)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_performance_insights(self) -> list[PerformanceInsight]:
        monitor = self._orchestrator.monitor
        monitor.record_memory_usage()
        return monitor.get_insights()

    def get_performance_metrics(self) -> PerformanceMetrics:
        return self._orchestrator.monitor.metrics()

    def reset_metrics(self) -> None:
        self._orchestrator.monitor.reset()

    def cache_stats(self) -> CacheStats:
        return self._orchestrator.cache_stats()

    def sweep_expired_cache(self) -> int:
        return self._orchestrator.sweep_expired()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch_profile(self, user_id: str) -> BiometricProfile | None:
        """Fetch with exponential backoff. None once every attempt has failed."""
        delay_ms = self._initial_delay_ms
        for attempt in range(1, self._fetch_attempts + 1):
            try:
                return await self._profiles.get_profile(user_id)
            except Exception as exc:
                logger.warning(
                    "Profile fetch for %s failed (attempt %d/%d): %s",
                    user_id, attempt, self._fetch_attempts, exc,
                )
                if attempt == self._fetch_attempts:
                    break
                await self._sleep(delay_ms / 1000)
                delay_ms = min(delay_ms * 2, self._max_delay_ms)
        logger.error("Giving up on profile fetch for %s; fallback goals will be used", user_id)
        return None

    async def _save(self, goals: DailyGoals) -> None:
        if self._store is None:
            return
        try:
            await self._store.save_goals(goals)
        except Exception:
            logger.exception("Failed to store goals for user %s", goals.user_id)
