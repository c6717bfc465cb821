"""The single gate between untrusted profile data and the calculators."""

from __future__ import annotations

import math
from datetime import date

from vitalgoals.domains.goals.domain_logic.errors import ValidationError
from vitalgoals.domains.goals.domain_logic.goal_models import (
    DEFAULT_ACTIVITY_LEVEL,
    BiometricProfile,
    CalculationInput,
    whole_years,
)

REQUIRED_FIELDS = ("age", "gender", "height_cm", "weight_kg")


def _bad_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return True
    return not math.isfinite(value) or value <= 0


def validate_profile(profile: BiometricProfile | None, today: date | None = None) -> CalculationInput:
    """Turn a raw profile into a bounded ``CalculationInput``.

    Raises:
        ValidationError: a required field is missing, non-positive,
            non-finite, or outside plausible human bounds. ``fields`` lists
            every offending field.
    """
    if profile is None:
        raise ValidationError("No profile available", fields=list(REQUIRED_FIELDS), missing=True)

    age = profile.resolved_age(today)
    missing = [
        name
        for name, value in (
            ("age", age),
            ("gender", profile.gender),
            ("height_cm", profile.height_cm),
            ("weight_kg", profile.weight_kg),
        )
        if value is None
    ]
    if missing:
        raise ValidationError(
            f"Profile missing required fields: {', '.join(missing)}", fields=missing, missing=True
        )

    invalid = [
        name
        for name, value in (("height_cm", profile.height_cm), ("weight_kg", profile.weight_kg))
        if _bad_number(value)
    ]
    age = whole_years(age)
    if isinstance(age, bool) or not isinstance(age, int) or age < 0:
        invalid.insert(0, "age")
    if invalid:
        raise ValidationError(
            f"Profile has non-positive or invalid values: {', '.join(invalid)}",
            fields=invalid,
        )

    # CalculationInput re-checks plausible ranges and raises on its own.
    return CalculationInput(
        age=age,
        gender=profile.gender,
        height_cm=float(profile.height_cm),
        weight_kg=float(profile.weight_kg),
        activity_level=profile.activity_level or DEFAULT_ACTIVITY_LEVEL,
    )


def is_valid_for_calculation(profile: BiometricProfile | None, today: date | None = None) -> bool:
    try:
        validate_profile(profile, today)
    except ValidationError:
        return False
    return True
