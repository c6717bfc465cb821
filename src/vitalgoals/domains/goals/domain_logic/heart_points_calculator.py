"""Daily heart points goal derived from the WHO weekly activity recommendation.

1 heart point = 1 minute of moderate-intensity activity (3-6 METs).
150 moderate minutes/week spread over 7 days gives ~21.4 points/day before
age and activity-level adjustments.
"""

from __future__ import annotations

from dataclasses import dataclass

from vitalgoals.domains.goals.domain_logic.goal_constants import (
    DEFAULT_CONSTANTS,
    GoalConstants,
)
from vitalgoals.domains.goals.domain_logic.goal_models import (
    HEART_POINTS_BOUNDS,
    CalculationInput,
    clamp,
)


@dataclass(frozen=True)
class HeartPointsBreakdown:
    who_weekly_minutes: int
    daily_moderate_minutes: float
    base_heart_points: float
    age_adjustment: float
    activity_adjustment: float
    adjusted_goal: float
    final_goal: int
    bounds_applied: bool
    days_per_week: int = 7

    @property
    def weekly_equivalent(self) -> int:
        return self.final_goal * self.days_per_week

    def explanation(self) -> str:
        bounds_note = " (adjusted for safety)" if self.bounds_applied else ""
        return "\n".join([
            "Heart Points Goal Calculation:",
            f"1. WHO Baseline: {self.who_weekly_minutes} minutes/week moderate activity",
            f"2. Daily Equivalent: {int(self.daily_moderate_minutes)} minutes/day",
            f"3. Base Heart Points: {int(self.base_heart_points)} points/day",
            f"4. Age Adjustment: {self.age_adjustment}x",
            f"5. Activity Adjustment: {self.activity_adjustment}x",
            f"6. Adjusted Goal: {int(self.adjusted_goal)} points/day",
            f"7. Final Goal: {self.final_goal} points/day{bounds_note}",
            "",
            f"This equals approximately {self.weekly_equivalent} minutes of moderate "
            "activity per week.",
        ])


def heart_points_breakdown(
    calc_input: CalculationInput,
    constants: GoalConstants = DEFAULT_CONSTANTS,
) -> HeartPointsBreakdown:
    table = constants.heart_points
    daily_minutes = constants.daily_moderate_minutes
    base = table.baseline
    age_adj = table.age_factor(calc_input.age)
    activity_adj = table.activity_factor(calc_input.activity_level)

    adjusted = base * age_adj * activity_adj
    final = clamp(int(adjusted), HEART_POINTS_BOUNDS)

    return HeartPointsBreakdown(
        who_weekly_minutes=constants.weekly_moderate_minutes,
        daily_moderate_minutes=daily_minutes,
        base_heart_points=base,
        age_adjustment=age_adj,
        activity_adjustment=activity_adj,
        adjusted_goal=adjusted,
        final_goal=final,
        bounds_applied=int(adjusted) != final,
        days_per_week=constants.days_per_week,
    )


def calculate_heart_points_goal(
    calc_input: CalculationInput,
    constants: GoalConstants = DEFAULT_CONSTANTS,
) -> int:
    """Daily heart points goal in [15, 50]."""
    return heart_points_breakdown(calc_input, constants).final_goal


def heart_points_to_minutes(
    heart_points: int,
    constants: GoalConstants = DEFAULT_CONSTANTS,
) -> int:
    """Equivalent minutes of moderate-intensity activity."""
    return heart_points // constants.points_per_moderate_minute


def weekly_equivalent(
    daily_heart_points: int,
    constants: GoalConstants = DEFAULT_CONSTANTS,
) -> int:
    return daily_heart_points * constants.days_per_week
