"""Mock biometric profiles for development and testing.

Each profile exercises a different branch of the calculators: a typical
adult, an older adult, a teenager, an unspecified gender, and incomplete
profiles that must produce fallback goals.
"""

from __future__ import annotations

from vitalgoals.domains.goals.domain_logic.goal_models import BiometricProfile

MOCK_PROFILES: dict[str, dict] = {
    "mock-adult-male": {
        "age": 30,
        "gender": "male",
        "height_cm": 175,
        "weight_kg": 70,
        "activity_level": "moderate",
    },
    "mock-older-female": {
        "age": 70,
        "gender": "female",
        "height_cm": 160,
        "weight_kg": 60,
        "activity_level": "light",
    },
    "mock-teen": {
        "age": 16,
        "gender": "female",
        "height_cm": 165,
        "weight_kg": 55,
        "activity_level": "active",
    },
    "mock-unspecified": {
        "age": 40,
        "gender": "prefer_not_to_say",
        "height_cm": 170,
        "weight_kg": 68,
    },
    "mock-incomplete": {
        "age": 45,
        "gender": "male",
    },
    "mock-implausible": {
        "age": 35,
        "gender": "female",
        "height_cm": 30,
        "weight_kg": 900,
    },
}

DEFAULT_MOCK_USER = "mock-adult-male"


def get_mock_profile(user_id: str) -> BiometricProfile | None:
    """Mock profile for ``user_id``; None for unknown users."""
    data = MOCK_PROFILES.get(user_id)
    if data is None:
        return None
    return BiometricProfile.from_dict({"user_id": user_id, **data})


def get_mock_profiles() -> list[BiometricProfile]:
    return [get_mock_profile(user_id) for user_id in MOCK_PROFILES]
