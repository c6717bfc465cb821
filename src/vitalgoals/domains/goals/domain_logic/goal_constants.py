"""Adjustment multipliers for the goal calculators, loadable from YAML.

Built-in defaults mirror ``constants/who_adjustments.yaml``. A YAML file only
needs to list the values it overrides.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from vitalgoals.domains.goals.domain_logic.goal_models import (
    ActivityLevel,
    Gender,
    age_band,
)

logger = logging.getLogger(__name__)

BUNDLED_CONSTANTS_PATH = (
    Path(__file__).resolve().parent.parent / "constants" / "who_adjustments.yaml"
)


@dataclass(frozen=True)
class AdjustmentTable:
    """A baseline value plus multiplicative age/gender/activity factors.

    Unknown keys (including a missing age or gender) resolve to a neutral 1.0.
    """

    baseline: float
    age_factors: dict[str, float] = field(default_factory=dict)
    gender_factors: dict[str, float] = field(default_factory=dict)
    activity_factors: dict[str, float] = field(default_factory=dict)

    def age_factor(self, age: int | None) -> float:
        band = age_band(age)
        if band is None:
            return 1.0
        return float(self.age_factors.get(band, 1.0))

    def gender_factor(self, gender: Gender | None) -> float:
        if gender is None:
            return 1.0
        return float(self.gender_factors.get(gender.value, 1.0))

    def activity_factor(self, activity_level: ActivityLevel | None) -> float:
        if activity_level is None:
            return 1.0
        return float(self.activity_factors.get(activity_level.value, 1.0))

    def merged(self, data: dict[str, Any] | None) -> AdjustmentTable:
        """Return a copy with the values in ``data`` layered on top."""
        if not data:
            return self
        return AdjustmentTable(
            baseline=float(data.get("baseline", self.baseline)),
            age_factors={**self.age_factors, **(data.get("age_factors") or {})},
            gender_factors={**self.gender_factors, **(data.get("gender_factors") or {})},
            activity_factors={**self.activity_factors, **(data.get("activity_factors") or {})},
        )


@dataclass(frozen=True)
class GoalConstants:
    """Every tunable multiplier used by the calculators and the fallback path."""

    steps: AdjustmentTable
    heart_points: AdjustmentTable
    weekly_moderate_minutes: int
    days_per_week: int
    points_per_moderate_minute: int
    fallback_steps: AdjustmentTable
    fallback_calories: AdjustmentTable
    fallback_heart_points: AdjustmentTable
    version: str = "builtin"

    @property
    def daily_moderate_minutes(self) -> float:
        return self.weekly_moderate_minutes / self.days_per_week


_ADULT_AGE = {"youth": 1.2, "adult": 1.0, "older_adult": 0.85}

DEFAULT_CONSTANTS = GoalConstants(
    steps=AdjustmentTable(
        baseline=10000,
        age_factors=dict(_ADULT_AGE),
        gender_factors={"male": 1.05, "female": 0.95, "unspecified": 1.0},
        activity_factors={
            "sedentary": 0.8,
            "light": 0.9,
            "moderate": 1.0,
            "active": 1.15,
            "very_active": 1.3,
        },
    ),
    heart_points=AdjustmentTable(
        baseline=150 / 7,
        age_factors=dict(_ADULT_AGE),
        activity_factors={
            "sedentary": 0.9,
            "light": 0.95,
            "moderate": 1.0,
            "active": 1.1,
            "very_active": 1.15,
        },
    ),
    weekly_moderate_minutes=150,
    days_per_week=7,
    points_per_moderate_minute=1,
    fallback_steps=AdjustmentTable(
        baseline=7500,
        age_factors={"youth": 1.1, "adult": 1.0, "older_adult": 0.9},
        gender_factors={"male": 1.02, "female": 0.98, "unspecified": 1.0},
    ),
    fallback_calories=AdjustmentTable(
        baseline=1800,
        age_factors={"youth": 1.15, "adult": 1.0, "older_adult": 0.9},
        gender_factors={"male": 1.15, "female": 0.9, "unspecified": 1.0},
    ),
    fallback_heart_points=AdjustmentTable(
        baseline=21,
        age_factors={"youth": 1.1, "adult": 1.0, "older_adult": 0.85},
    ),
)


def load_goal_constants(path: str | Path | None = None) -> GoalConstants:
    """Load constants from YAML, layering the file over the built-in defaults.

    ``path`` defaults to the bundled ``who_adjustments.yaml``. A missing file
    logs a warning and returns the defaults; a malformed file raises.
    """
    path = Path(path) if path else BUNDLED_CONSTANTS_PATH
    if not path.is_file():
        logger.warning("Goal constants file does not exist: %s (using defaults)", path)
        return DEFAULT_CONSTANTS

    with open(path) as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Goal constants file {path} must contain a mapping")

    steps_data = data.get("steps") or {}
    hp_data = data.get("heart_points") or {}
    fallback_data = data.get("fallback") or {}

    weekly = int(hp_data.get("weekly_moderate_minutes", DEFAULT_CONSTANTS.weekly_moderate_minutes))
    days = int(hp_data.get("days_per_week", DEFAULT_CONSTANTS.days_per_week))
    if days <= 0:
        raise ValueError("heart_points.days_per_week must be positive")
    per_minute = int(
        hp_data.get("points_per_moderate_minute", DEFAULT_CONSTANTS.points_per_moderate_minute)
    )

    heart_points = DEFAULT_CONSTANTS.heart_points.merged(
        {k: v for k, v in hp_data.items() if k in ("age_factors", "activity_factors")}
    )
    heart_points = AdjustmentTable(
        baseline=weekly / days * per_minute,
        age_factors=heart_points.age_factors,
        activity_factors=heart_points.activity_factors,
    )

    constants = GoalConstants(
        steps=DEFAULT_CONSTANTS.steps.merged(steps_data),
        heart_points=heart_points,
        weekly_moderate_minutes=weekly,
        days_per_week=days,
        points_per_moderate_minute=per_minute,
        fallback_steps=DEFAULT_CONSTANTS.fallback_steps.merged(fallback_data.get("steps")),
        fallback_calories=DEFAULT_CONSTANTS.fallback_calories.merged(fallback_data.get("calories")),
        fallback_heart_points=DEFAULT_CONSTANTS.fallback_heart_points.merged(
            fallback_data.get("heart_points")
        ),
        version=str(data.get("version", "unversioned")),
    )
    logger.info("Loaded goal constants v%s from %s", constants.version, path)
    return constants
