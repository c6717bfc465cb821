"""Safe default goals for when a personalized calculation is not possible.

Fallback goals sit inside a tighter band than the medical bounds so that a
degraded result is always conservative. Only plausible age and gender
values from a partial profile are used; everything else is ignored.
"""

from __future__ import annotations

import logging

from vitalgoals.domains.goals.domain_logic.errors import ValidationError
from vitalgoals.domains.goals.domain_logic.goal_constants import (
    DEFAULT_CONSTANTS,
    AdjustmentTable,
    GoalConstants,
)
from vitalgoals.domains.goals.domain_logic.goal_models import (
    AGE_RANGE,
    FALLBACK_CALORIES_BOUNDS,
    FALLBACK_HEART_POINTS_BOUNDS,
    FALLBACK_STEPS_BOUNDS,
    BiometricProfile,
    CalculationSource,
    DailyGoals,
    Gender,
    clamp,
    goals_within_bounds,
    whole_years,
)

logger = logging.getLogger(__name__)

INVALID_INPUT = "Invalid input data"
MISSING_DATA = "Missing required data"
ARITHMETIC_FAILURE = "Mathematical calculation error"
UNEXPECTED_FAILURE = "Unexpected calculation error"

EMERGENCY_STEPS = 6000
EMERGENCY_CALORIES = 1600
EMERGENCY_HEART_POINTS = 18

_BASE_EXPLANATION = (
    "We've set safe default wellness goals for you based on WHO health guidelines.\n"
    "\n"
    "Your current goals:\n"
    "- Steps: Encourages daily movement for cardiovascular health\n"
    "- Calories: Supports healthy metabolism and energy balance\n"
    "- Heart Points: Meets WHO recommendations for moderate activity\n"
    "\n"
    "These goals provide proven health benefits and are achievable for most people."
)

_REASON_GUIDANCE = {
    INVALID_INPUT: (
        "To get personalized goals, please complete your profile with accurate "
        "height, weight, and birthday information."
    ),
    MISSING_DATA: (
        "Complete your profile to receive goals calculated specifically for your "
        "age, gender, and physical characteristics."
    ),
}
_DEFAULT_GUIDANCE = (
    "You can update your profile anytime to receive personalized goal calculations."
)


def reason_for_error(error: BaseException) -> str:
    """Map a calculation failure to a user-facing fallback reason."""
    if isinstance(error, ValidationError):
        return MISSING_DATA if error.missing else INVALID_INPUT
    if isinstance(error, ArithmeticError):
        return ARITHMETIC_FAILURE
    if isinstance(error, (ValueError, TypeError)):
        return INVALID_INPUT
    return UNEXPECTED_FAILURE


class FallbackGoalGenerator:
    """Stateless producer of FALLBACK_DEFAULT goals."""

    def __init__(self, constants: GoalConstants = DEFAULT_CONSTANTS) -> None:
        self._constants = constants

    def generate(
        self,
        user_id: str,
        profile: BiometricProfile | None = None,
        reason: str | None = None,
    ) -> DailyGoals:
        """Conservative goals, lightly adjusted by whatever age/gender is known.

        Never raises: if adjusted values cannot be produced the emergency
        goals are returned instead.
        """
        try:
            age, gender = self._usable_demographics(profile)
            goals = DailyGoals(
                user_id=user_id,
                steps_goal=self._adjusted(
                    self._constants.fallback_steps, age, gender, FALLBACK_STEPS_BOUNDS
                ),
                calories_goal=self._adjusted(
                    self._constants.fallback_calories, age, gender, FALLBACK_CALORIES_BOUNDS
                ),
                heart_points_goal=self._adjusted(
                    self._constants.fallback_heart_points, age, None,
                    FALLBACK_HEART_POINTS_BOUNDS,
                ),
                calculation_source=CalculationSource.FALLBACK_DEFAULT,
                fallback_reason=reason,
            )
        except Exception:
            logger.exception("Fallback generation failed; using emergency goals")
            return self.emergency_fallback(user_id, reason)

        logger.info(
            "Generated fallback goals (%s): %s",
            reason or "unspecified reason",
            goals.sanitized_for_logging(),
        )
        return goals

    def generate_for_error(
        self,
        user_id: str,
        error: BaseException,
        profile: BiometricProfile | None = None,
    ) -> DailyGoals:
        reason = reason_for_error(error)
        logger.warning("Generating fallback goals due to error: %s (%s)", reason,
                       type(error).__name__)
        return self.generate(user_id, profile, reason)

    def emergency_fallback(self, user_id: str, reason: str | None = None) -> DailyGoals:
        """Fixed ultra-conservative goals. Used when everything else has failed."""
        logger.warning("Creating emergency fallback goals")
        return DailyGoals(
            user_id=user_id,
            steps_goal=EMERGENCY_STEPS,
            calories_goal=EMERGENCY_CALORIES,
            heart_points_goal=EMERGENCY_HEART_POINTS,
            calculation_source=CalculationSource.FALLBACK_DEFAULT,
            fallback_reason=reason,
        )

    @staticmethod
    def explain(reason: str | None = None) -> str:
        """Why the user received default goals and how to get personalized ones."""
        guidance = _REASON_GUIDANCE.get(reason or "", _DEFAULT_GUIDANCE)
        return f"{_BASE_EXPLANATION}\n\n{guidance}"

    @staticmethod
    def validate(goals: DailyGoals) -> bool:
        """True if ``goals`` are FALLBACK_DEFAULT and inside the fallback band."""
        valid = goals.is_fallback and goals_within_bounds(
            goals.steps_goal, goals.calories_goal, goals.heart_points_goal, fallback=True
        )
        if not valid:
            logger.error("Fallback goals failed validation: %s", goals.sanitized_for_logging())
        return valid

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _usable_demographics(
        profile: BiometricProfile | None,
    ) -> tuple[int | None, Gender | None]:
        if profile is None:
            return None, None
        try:
            age = whole_years(profile.resolved_age())
        except (TypeError, ValueError, AttributeError):
            age = None
        if isinstance(age, bool) or not isinstance(age, int) \
                or not AGE_RANGE[0] <= age <= AGE_RANGE[1]:
            age = None
        gender = profile.gender if isinstance(profile.gender, Gender) else None
        return age, gender

    @staticmethod
    def _adjusted(
        table: AdjustmentTable,
        age: int | None,
        gender: Gender | None,
        bounds: tuple[int, int],
    ) -> int:
        value = table.baseline * table.age_factor(age) * table.gender_factor(gender)
        return clamp(int(value), bounds)
