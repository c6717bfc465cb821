"""Daily calorie goal: BMR x activity factor (TDEE), clamped to safety bounds.

BMR equations:
    Male (Harris-Benedict Revised, 1984):
        88.362 + 13.397 x weight + 4.799 x height - 5.677 x age
    Female (Harris-Benedict Revised, 1984):
        447.593 + 9.247 x weight + 3.098 x height - 4.330 x age
    Unspecified (Mifflin-St Jeor, 1990, neutral constant):
        10 x weight + 6.25 x height - 5 x age + 5

Weight in kg, height in cm, age in years.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from vitalgoals.domains.goals.domain_logic.errors import GoalArithmeticError
from vitalgoals.domains.goals.domain_logic.goal_models import (
    CALORIES_BOUNDS,
    ActivityLevel,
    CalculationInput,
    Gender,
    clamp,
)

HARRIS_BENEDICT = "Harris-Benedict Revised (1984)"
MIFFLIN_ST_JEOR = "Mifflin-St Jeor (1990)"

# (constant, weight factor, height factor, age factor)
_MALE = (88.362, 13.397, 4.799, 5.677)
_FEMALE = (447.593, 9.247, 3.098, 4.330)
_MIFFLIN = (5.0, 10.0, 6.25, 5.0)


def calculate_bmr(calc_input: CalculationInput) -> float:
    """Basal metabolic rate in kcal/day for the input's gender."""
    if calc_input.gender is Gender.MALE:
        const, w, h, a = _MALE
    elif calc_input.gender is Gender.FEMALE:
        const, w, h, a = _FEMALE
    else:
        const, w, h, a = _MIFFLIN
    bmr = const + w * calc_input.weight_kg + h * calc_input.height_cm - a * calc_input.age
    if not math.isfinite(bmr):
        raise GoalArithmeticError(f"BMR is not finite: {bmr!r}")
    return bmr


def equation_name(gender: Gender) -> str:
    return MIFFLIN_ST_JEOR if gender is Gender.UNSPECIFIED else HARRIS_BENEDICT


@dataclass(frozen=True)
class CaloriesBreakdown:
    bmr: float
    activity_level: ActivityLevel
    activity_factor: float
    tdee: float
    final_goal: int
    equation: str
    bounds_applied: bool

    def explanation(self) -> str:
        bounds_note = " (adjusted for medical safety)" if self.bounds_applied else ""
        return "\n".join([
            "Calorie Goal Calculation:",
            f"1. BMR using {self.equation}: {int(self.bmr)} calories/day",
            f"2. Activity Level: {self.activity_level.description}",
            f"3. Activity Factor: {self.activity_factor}x",
            f"4. TDEE: {int(self.bmr)} x {self.activity_factor} = {int(self.tdee)} calories/day",
            f"5. Final Goal: {self.final_goal} calories/day{bounds_note}",
        ])


def calories_breakdown(calc_input: CalculationInput) -> CaloriesBreakdown:
    bmr = calculate_bmr(calc_input)
    factor = calc_input.activity_level.factor
    tdee = bmr * factor
    if not math.isfinite(tdee):
        raise GoalArithmeticError(f"TDEE is not finite: {tdee!r}")
    final = clamp(int(tdee), CALORIES_BOUNDS)

    return CaloriesBreakdown(
        bmr=bmr,
        activity_level=calc_input.activity_level,
        activity_factor=factor,
        tdee=tdee,
        final_goal=final,
        equation=equation_name(calc_input.gender),
        bounds_applied=int(tdee) != final,
    )


def calculate_calories_goal(calc_input: CalculationInput) -> int:
    """Daily calorie goal in [1200, 4000].

    Raises:
        GoalArithmeticError: BMR or TDEE is NaN or infinite.
    """
    return calories_breakdown(calc_input).final_goal
