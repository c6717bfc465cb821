"""Daily steps goal based on the WHO Physical Activity Guidelines 2020.

10,000 steps is the adult baseline. Age, gender and activity level apply
multiplicative adjustments; the result is always clamped to the medical
safety bounds. Deterministic, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

from vitalgoals.domains.goals.domain_logic.goal_constants import (
    DEFAULT_CONSTANTS,
    GoalConstants,
)
from vitalgoals.domains.goals.domain_logic.goal_models import (
    STEPS_BOUNDS,
    CalculationInput,
    clamp,
)


@dataclass(frozen=True)
class StepsBreakdown:
    baseline: int
    age_adjustment: float
    gender_adjustment: float
    activity_adjustment: float
    adjusted_goal: float
    final_goal: int
    bounds_applied: bool

    def explanation(self) -> str:
        bounds_note = " (adjusted for medical safety)" if self.bounds_applied else ""
        return "\n".join([
            f"Steps Goal: {self.final_goal} steps/day{bounds_note}",
            f"- WHO Baseline: {self.baseline} steps",
            f"- Age Adjustment: {self.age_adjustment}x",
            f"- Gender Adjustment: {self.gender_adjustment}x",
            f"- Activity Adjustment: {self.activity_adjustment}x",
            f"- Adjusted Goal: {int(self.adjusted_goal)} steps",
        ])


def steps_breakdown(
    calc_input: CalculationInput,
    constants: GoalConstants = DEFAULT_CONSTANTS,
) -> StepsBreakdown:
    table = constants.steps
    age_adj = table.age_factor(calc_input.age)
    gender_adj = table.gender_factor(calc_input.gender)
    activity_adj = table.activity_factor(calc_input.activity_level)

    adjusted = table.baseline * age_adj * gender_adj * activity_adj
    final = clamp(int(adjusted), STEPS_BOUNDS)

    return StepsBreakdown(
        baseline=int(table.baseline),
        age_adjustment=age_adj,
        gender_adjustment=gender_adj,
        activity_adjustment=activity_adj,
        adjusted_goal=adjusted,
        final_goal=final,
        bounds_applied=int(adjusted) != final,
    )


def calculate_steps_goal(
    calc_input: CalculationInput,
    constants: GoalConstants = DEFAULT_CONSTANTS,
) -> int:
    """Daily steps goal in [5000, 20000]."""
    return steps_breakdown(calc_input, constants).final_goal
