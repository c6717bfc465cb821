"""Shared test fixtures for Vital Goals tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOAL_CONSTANTS_PATH", "")
    monkeypatch.setenv("PROFILE_RETRY_INITIAL_DELAY_MS", "1")
    monkeypatch.setenv("PROFILE_RETRY_MAX_DELAY_MS", "4")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from vitalgoals.core.cache.result_cache import ResultCache  # noqa: E402
from vitalgoals.core.monitoring.performance import PerformanceMonitor  # noqa: E402
from vitalgoals.domains.goals.connectors.providers import (  # noqa: E402
    InMemoryGoalStore,
    InMemoryProfileProvider,
)
from vitalgoals.domains.goals.domain_logic.goal_models import (  # noqa: E402
    ActivityLevel,
    BiometricProfile,
    CalculationInput,
    Gender,
)
from vitalgoals.domains.goals.domain_logic.orchestrator import (  # noqa: E402
    GoalCalculationOrchestrator,
)


def make_profile(
    user_id: str = "user-1",
    age: int | None = 30,
    gender: Gender | None = Gender.MALE,
    height_cm: float | None = 175.0,
    weight_kg: float | None = 75.0,
    activity_level: ActivityLevel | None = ActivityLevel.MODERATE,
    **kwargs,
) -> BiometricProfile:
    """Create a profile with sensible defaults (a 30 year old moderately active male)."""
    return BiometricProfile(
        user_id=user_id,
        age=age,
        gender=gender,
        height_cm=height_cm,
        weight_kg=weight_kg,
        activity_level=activity_level,
        **kwargs,
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def profile_factory():
    """Expose make_profile to tests without importing conftest."""
    return make_profile


@pytest.fixture
def adult_male_profile() -> BiometricProfile:
    return make_profile()


@pytest.fixture
def older_unspecified_profile() -> BiometricProfile:
    return make_profile(
        user_id="user-older",
        age=70,
        gender=Gender.UNSPECIFIED,
        height_cm=170.0,
        weight_kg=65.0,
        activity_level=None,
    )


@pytest.fixture
def adult_male_input() -> CalculationInput:
    return CalculationInput(
        age=30,
        gender=Gender.MALE,
        height_cm=175.0,
        weight_kg=75.0,
        activity_level=ActivityLevel.MODERATE,
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monitor() -> PerformanceMonitor:
    return PerformanceMonitor(memory_probe=lambda: 10.0)


@pytest.fixture
def orchestrator(monitor: PerformanceMonitor) -> GoalCalculationOrchestrator:
    return GoalCalculationOrchestrator(cache=ResultCache(), monitor=monitor)


@pytest.fixture
def profile_provider(adult_male_profile, older_unspecified_profile) -> InMemoryProfileProvider:
    return InMemoryProfileProvider([
        adult_male_profile,
        older_unspecified_profile,
        make_profile(user_id="user-invalid", height_cm=-1.0, weight_kg=-1.0),
        make_profile(user_id="user-incomplete", height_cm=None, weight_kg=None),
    ])


@pytest.fixture
def goal_store() -> InMemoryGoalStore:
    return InMemoryGoalStore()
