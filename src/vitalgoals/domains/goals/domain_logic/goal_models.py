"""Goal calculation models and medical-safety bounds."""

from __future__ import annotations

import hashlib
import json
import math
from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from vitalgoals.domains.goals.domain_logic.errors import ValidationError


# ---------------------------------------------------------------------------
# Medical-safety bounds (inclusive)
# ---------------------------------------------------------------------------

STEPS_BOUNDS = (5000, 20000)
CALORIES_BOUNDS = (1200, 4000)
HEART_POINTS_BOUNDS = (15, 50)

# Tighter bounds for degraded results: a fallback must stay conservative.
FALLBACK_STEPS_BOUNDS = (6000, 9000)
FALLBACK_CALORIES_BOUNDS = (1400, 2400)
FALLBACK_HEART_POINTS_BOUNDS = (17, 25)

# Plausible human ranges for a calculation input
AGE_RANGE = (0, 120)
HEIGHT_CM_RANGE = (50.0, 300.0)
WEIGHT_KG_RANGE = (10.0, 500.0)

YOUTH_AGE_THRESHOLD = 18
OLDER_ADULT_AGE_THRESHOLD = 65


def clamp(value: int, bounds: tuple[int, int]) -> int:
    """Clamp an integer to inclusive ``bounds``."""
    lo, hi = bounds
    return max(lo, min(hi, value))


def _within(value: int, bounds: tuple[int, int]) -> bool:
    return bounds[0] <= value <= bounds[1]


def whole_years(age: Any) -> Any:
    """Integral floats such as ``30.0`` (common from JSON) become ints.

    Anything else is returned unchanged for the caller to reject.
    """
    if isinstance(age, float) and age.is_integer():
        return int(age)
    return age


def age_band(age: int | None) -> str | None:
    """WHO age category: 'youth' (<18), 'adult' (18-64) or 'older_adult' (65+)."""
    if age is None:
        return None
    if age < YOUTH_AGE_THRESHOLD:
        return "youth"
    if age >= OLDER_ADULT_AGE_THRESHOLD:
        return "older_adult"
    return "adult"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNSPECIFIED = "unspecified"

    @classmethod
    def parse(cls, value: Any) -> Gender | None:
        """Parse a stored gender value. Inclusive options map to UNSPECIFIED."""
        if value is None or isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        if not text:
            return None
        if text in ("other", "prefer_not_to_say", "nonbinary", "non_binary"):
            return cls.UNSPECIFIED
        try:
            return cls(text)
        except ValueError:
            return None

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class ActivityLevel(str, Enum):
    """Activity categories with their TDEE multiplier and description."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"

    @property
    def factor(self) -> float:
        return _ACTIVITY_FACTORS[self]

    @property
    def description(self) -> str:
        return _ACTIVITY_DESCRIPTIONS[self]

    @classmethod
    def parse(cls, value: Any) -> ActivityLevel | None:
        if value is None or isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(text)
        except ValueError:
            return None


_ACTIVITY_FACTORS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

_ACTIVITY_DESCRIPTIONS = {
    ActivityLevel.SEDENTARY: "Little to no exercise, desk job",
    ActivityLevel.LIGHT: "Light exercise 1-3 days/week",
    ActivityLevel.MODERATE: "Moderate exercise 3-5 days/week",
    ActivityLevel.ACTIVE: "Heavy exercise 6-7 days/week",
    ActivityLevel.VERY_ACTIVE: "Very heavy exercise, physical job",
}

# Most urban profiles fall into the light category when none is recorded.
DEFAULT_ACTIVITY_LEVEL = ActivityLevel.LIGHT


class CalculationSource(str, Enum):
    WHO_STANDARD = "WHO_STANDARD"
    FALLBACK_DEFAULT = "FALLBACK_DEFAULT"
    USER_ADJUSTED = "USER_ADJUSTED"

    @property
    def display_name(self) -> str:
        return {
            CalculationSource.WHO_STANDARD: "WHO Standard",
            CalculationSource.FALLBACK_DEFAULT: "Fallback Default",
            CalculationSource.USER_ADJUSTED: "User Adjusted",
        }[self]


# ---------------------------------------------------------------------------
# Profile (external input)
# ---------------------------------------------------------------------------

def age_from_birth_date(birth_date: date, today: date | None = None) -> int:
    """Whole years elapsed between ``birth_date`` and ``today``."""
    today = today or date.today()
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years


@dataclass
class BiometricProfile:
    """Biometric profile as supplied by the profile store.

    Any field may be missing or out of range; nothing here is trusted until
    it passes through the input validator.
    """

    user_id: str
    age: int | None = None
    birth_date: date | None = None
    gender: Gender | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    activity_level: ActivityLevel | None = None

    def resolved_age(self, today: date | None = None) -> int | None:
        """Explicit age if recorded, otherwise derived from the birth date."""
        if self.age is not None:
            return self.age
        if self.birth_date is not None:
            return age_from_birth_date(self.birth_date, today)
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BiometricProfile:
        """Build a profile from a loosely typed dict (storage rows, tool input)."""
        birth_date = data.get("birth_date")
        if isinstance(birth_date, str) and birth_date:
            birth_date = date.fromisoformat(birth_date)
        return cls(
            user_id=str(data.get("user_id", "")),
            age=data.get("age"),
            birth_date=birth_date or None,
            gender=Gender.parse(data.get("gender")),
            height_cm=data.get("height_cm"),
            weight_kg=data.get("weight_kg"),
            activity_level=ActivityLevel.parse(data.get("activity_level")),
        )


# ---------------------------------------------------------------------------
# Validated calculation input
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class CalculationInput:
    """Sanitized, range-checked inputs for the three calculators.

    Construction fails with ``ValidationError`` when any field is outside
    plausible human bounds.
    """

    age: int
    gender: Gender
    height_cm: float
    weight_kg: float
    activity_level: ActivityLevel = DEFAULT_ACTIVITY_LEVEL

    def __post_init__(self) -> None:
        bad: list[str] = []
        if not isinstance(self.age, int) or isinstance(self.age, bool) \
                or not AGE_RANGE[0] <= self.age <= AGE_RANGE[1]:
            bad.append("age")
        if not isinstance(self.gender, Gender):
            bad.append("gender")
        for name, bounds in (("height_cm", HEIGHT_CM_RANGE), ("weight_kg", WEIGHT_KG_RANGE)):
            value = getattr(self, name)
            if not _is_number(value) or not math.isfinite(value) \
                    or not bounds[0] <= value <= bounds[1]:
                bad.append(name)
        if not isinstance(self.activity_level, ActivityLevel):
            bad.append("activity_level")
        if bad:
            raise ValidationError(
                f"Calculation input out of range: {', '.join(bad)}", fields=bad
            )

    def fingerprint(self) -> str:
        """Deterministic cache key over the biometric fields (user-independent)."""
        canonical = json.dumps(
            {
                "age": self.age,
                "gender": self.gender.value,
                "height_cm": round(float(self.height_cm), 2),
                "weight_kg": round(float(self.weight_kg), 2),
                "activity_level": self.activity_level.value,
            },
            sort_keys=True,
            separators=(",", ":"),
        )
        return hashlib.sha256(canonical.encode()).hexdigest()

    def sanitized_for_logging(self) -> dict[str, str]:
        """Banded view of the input, safe to write to logs."""
        height_band = "below_160" if self.height_cm < 160 else (
            "160_180" if self.height_cm < 180 else "above_180"
        )
        weight_band = "below_60" if self.weight_kg < 60 else (
            "60_80" if self.weight_kg < 80 else "above_80"
        )
        return {
            "age_band": age_band(self.age),
            "gender": self.gender.value,
            "height_band": height_band,
            "weight_band": weight_band,
            "activity_level": self.activity_level.value,
        }


# ---------------------------------------------------------------------------
# Result value object
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DailyGoals:
    """Daily targets for one user. Immutable once created.

    All three goals must lie within the medical-safety bounds whatever the
    calculation source.
    """

    user_id: str
    steps_goal: int
    calories_goal: int
    heart_points_goal: int
    calculation_source: CalculationSource
    calculated_at: datetime = field(default_factory=_utcnow)
    # Why a fallback was used (e.g. "Missing required data"); None otherwise
    fallback_reason: str | None = None

    def __post_init__(self) -> None:
        checks = (
            ("steps_goal", self.steps_goal, STEPS_BOUNDS),
            ("calories_goal", self.calories_goal, CALORIES_BOUNDS),
            ("heart_points_goal", self.heart_points_goal, HEART_POINTS_BOUNDS),
        )
        for name, value, bounds in checks:
            if not isinstance(value, int) or isinstance(value, bool) or not _within(value, bounds):
                raise ValueError(f"{name}={value!r} outside safety bounds {bounds}")

    @property
    def is_fallback(self) -> bool:
        return self.calculation_source is CalculationSource.FALLBACK_DEFAULT

    def with_user(self, user_id: str) -> DailyGoals:
        """Same goals, attributed to ``user_id``."""
        if user_id == self.user_id:
            return self
        return replace(self, user_id=user_id)

    def summary(self) -> str:
        return (
            f"Steps: {self.steps_goal}, Calories: {self.calories_goal}, "
            f"Heart Points: {self.heart_points_goal}"
        )

    def sanitized_for_logging(self) -> str:
        return (
            f"Goals(steps={self.steps_goal}, calories={self.calories_goal}, "
            f"heart_points={self.heart_points_goal}, source={self.calculation_source.value})"
        )

    def source_message(self) -> str:
        if self.is_fallback:
            return (
                "These are safe default goals based on WHO health guidelines. "
                "Complete your profile to get personalized calculations."
            )
        return (
            "These goals are calculated specifically for you based on WHO "
            "standards and your profile."
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["calculation_source"] = self.calculation_source.value
        data["calculated_at"] = self.calculated_at.isoformat()
        return data


def goals_within_bounds(
    steps: int,
    calories: int,
    heart_points: int,
    *,
    fallback: bool = False,
) -> bool:
    """True if all three values lie within the medical (or fallback) bounds."""
    if fallback:
        bounds = (FALLBACK_STEPS_BOUNDS, FALLBACK_CALORIES_BOUNDS, FALLBACK_HEART_POINTS_BOUNDS)
    else:
        bounds = (STEPS_BOUNDS, CALORIES_BOUNDS, HEART_POINTS_BOUNDS)
    return all(
        _within(value, b) for value, b in zip((steps, calories, heart_points), bounds)
    )
