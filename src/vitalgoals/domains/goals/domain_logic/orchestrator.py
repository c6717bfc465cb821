"""Goal calculation pipeline.

    VALIDATE -> CACHE_LOOKUP -> (hit) DONE
                             -> (miss) COMPUTE -> ASSEMBLE -> BOUND_CHECK
                                       -> CACHE_STORE -> DONE
    any failure -> FALLBACK (-> EMERGENCY if the fallback itself fails)

The pipeline core returns an explicit ``CalculationResult``; ``calculate()``
dispatches on it and always hands the caller a ``DailyGoals``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Union

from vitalgoals.core.cache.result_cache import CacheStats, ResultCache
from vitalgoals.core.monitoring.performance import PerformanceMonitor
from vitalgoals.domains.goals.domain_logic.calories_calculator import (
    CaloriesBreakdown,
    calculate_calories_goal,
    calories_breakdown,
)
from vitalgoals.domains.goals.domain_logic.errors import (
    CacheError,
    CatastrophicError,
    GoalArithmeticError,
    GoalCalculationError,
    ValidationError,
)
from vitalgoals.domains.goals.domain_logic.fallback_generator import (
    FallbackGoalGenerator,
    reason_for_error,
)
from vitalgoals.domains.goals.domain_logic.goal_constants import (
    DEFAULT_CONSTANTS,
    GoalConstants,
)
from vitalgoals.domains.goals.domain_logic.goal_models import (
    BiometricProfile,
    CalculationInput,
    CalculationSource,
    DailyGoals,
    goals_within_bounds,
)
from vitalgoals.domains.goals.domain_logic.heart_points_calculator import (
    HeartPointsBreakdown,
    calculate_heart_points_goal,
    heart_points_breakdown,
)
from vitalgoals.domains.goals.domain_logic.input_validator import validate_profile
from vitalgoals.domains.goals.domain_logic.steps_calculator import (
    StepsBreakdown,
    calculate_steps_goal,
    steps_breakdown,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pipeline results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CalculationSuccess:
    goals: DailyGoals
    from_cache: bool = False


@dataclass(frozen=True)
class CalculationFailure:
    error: GoalCalculationError


CalculationResult = Union[CalculationSuccess, CalculationFailure]


@dataclass(frozen=True)
class GoalCalculationBreakdown:
    """Per-goal working for a single validated input."""

    calculation_input: CalculationInput
    steps: StepsBreakdown
    calories: CaloriesBreakdown
    heart_points: HeartPointsBreakdown

    def explanation(self) -> str:
        profile = self.calculation_input
        header = (
            f"Your goals are calculated from WHO guidelines for a "
            f"{profile.gender.display_name.lower()} aged {profile.age} with a "
            f"{profile.activity_level.value.replace('_', ' ')} activity level."
        )
        return "\n\n".join([
            header,
            self.steps.explanation(),
            self.calories.explanation(),
            self.heart_points.explanation(),
        ])

    def to_dict(self) -> dict:
        return {
            "profile": self.calculation_input.sanitized_for_logging(),
            "steps_goal": self.steps.final_goal,
            "calories_goal": self.calories.final_goal,
            "heart_points_goal": self.heart_points.final_goal,
            "bmr_equation": self.calories.equation,
            "explanation": self.explanation(),
        }


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class GoalCalculationOrchestrator:
    """Runs the calculation pipeline. ``calculate()`` never raises."""

    def __init__(
        self,
        cache: ResultCache | None = None,
        monitor: PerformanceMonitor | None = None,
        fallback_generator: FallbackGoalGenerator | None = None,
        constants: GoalConstants = DEFAULT_CONSTANTS,
    ) -> None:
        self._cache = cache if cache is not None else ResultCache()
        self._monitor = monitor if monitor is not None else PerformanceMonitor()
        self._constants = constants
        self._fallback = fallback_generator or FallbackGoalGenerator(constants)

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def monitor(self) -> PerformanceMonitor:
        return self._monitor

    @property
    def fallback_generator(self) -> FallbackGoalGenerator:
        return self._fallback

    async def calculate(
        self,
        profile: BiometricProfile | None,
        user_id: str | None = None,
    ) -> DailyGoals:
        """Goals for ``profile``; a fallback result on any failure."""
        if user_id is None:
            user_id = profile.user_id if profile is not None else ""
        start_time = time.monotonic()

        try:
            result = await self._run_pipeline(user_id, profile)
        except Exception as exc:
            logger.exception("Unexpected failure in goal calculation")
            result = CalculationFailure(CatastrophicError(f"{type(exc).__name__}: {exc}"))

        elapsed_ms = (time.monotonic() - start_time) * 1000

        if isinstance(result, CalculationSuccess):
            if result.from_cache:
                self._monitor.record_cache_hit(elapsed_ms)
            else:
                self._monitor.record_success(elapsed_ms)
            logger.info(
                "Goal calculation %s in %.1fms: %s",
                "served from cache" if result.from_cache else "completed",
                elapsed_ms,
                result.goals.sanitized_for_logging(),
            )
            return result.goals

        self._monitor.record_failure(elapsed_ms, result.error)
        return self._fallback_goals(user_id, profile, result.error)

    async def _run_pipeline(
        self,
        user_id: str,
        profile: BiometricProfile | None,
    ) -> CalculationResult:
        try:
            calc_input = validate_profile(profile)
        except ValidationError as exc:
            logger.warning("Profile failed validation: %s (fields=%s)", exc, exc.fields)
            return CalculationFailure(exc)

        logger.debug("Calculating goals for input %s", calc_input.sanitized_for_logging())
        key = calc_input.fingerprint()

        cached = self._cache_lookup(key)
        if cached is not None:
            return CalculationSuccess(cached.with_user(user_id), from_cache=True)

        try:
            steps, calories, heart_points = await asyncio.gather(
                asyncio.to_thread(calculate_steps_goal, calc_input, self._constants),
                asyncio.to_thread(calculate_calories_goal, calc_input),
                asyncio.to_thread(calculate_heart_points_goal, calc_input, self._constants),
            )
        except GoalCalculationError as exc:
            return CalculationFailure(exc)
        except ArithmeticError as exc:
            return CalculationFailure(GoalArithmeticError(str(exc)))

        if not goals_within_bounds(steps, calories, heart_points):
            return CalculationFailure(GoalArithmeticError(
                f"Assembled goals outside safety bounds: "
                f"steps={steps}, calories={calories}, heart_points={heart_points}"
            ))

        goals = DailyGoals(
            user_id=user_id,
            steps_goal=steps,
            calories_goal=calories,
            heart_points_goal=heart_points,
            calculation_source=CalculationSource.WHO_STANDARD,
        )
        self._cache_store(key, goals)
        return CalculationSuccess(goals)

    def _cache_lookup(self, key: str) -> DailyGoals | None:
        try:
            return self._cache.get(key)
        except Exception as exc:
            logger.warning("Cache lookup failed; treating as miss: %s", CacheError(str(exc)))
            return None

    def _cache_store(self, key: str, goals: DailyGoals) -> None:
        try:
            self._cache.put(key, goals)
        except Exception as exc:
            logger.warning("Cache store failed; result not cached: %s", CacheError(str(exc)))

    def _fallback_goals(
        self,
        user_id: str,
        profile: BiometricProfile | None,
        error: GoalCalculationError,
    ) -> DailyGoals:
        self._monitor.record_fallback()
        reason = reason_for_error(error)
        try:
            goals = self._fallback.generate_for_error(user_id, error, profile)
        except Exception:
            logger.exception("Fallback generator failed; returning emergency goals")
            return self._fallback.emergency_fallback(user_id, reason)
        if not self._fallback.validate(goals):
            return self._fallback.emergency_fallback(user_id, reason)
        return goals

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def breakdown(self, profile: BiometricProfile | None) -> GoalCalculationBreakdown | None:
        """Step-by-step working for ``profile``, or None if it is not calculable."""
        try:
            calc_input = validate_profile(profile)
            return GoalCalculationBreakdown(
                calculation_input=calc_input,
                steps=steps_breakdown(calc_input, self._constants),
                calories=calories_breakdown(calc_input),
                heart_points=heart_points_breakdown(calc_input, self._constants),
            )
        except GoalCalculationError as exc:
            logger.info("No calculation breakdown available: %s", exc)
            return None

    def sweep_expired(self) -> int:
        return self._cache.sweep_expired()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats(hit_rate=self._monitor.cache_hit_rate())
