"""Tests for GoalService and recalculation trigger detection."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest

from vitalgoals.domains.goals.connectors import GoalStore, ProfileProvider
from vitalgoals.domains.goals.domain_logic.goal_models import CalculationSource, Gender
from vitalgoals.domains.goals.domain_logic.goal_service import (
    BECAME_INVALID,
    BECAME_VALID,
    NEW_PROFILE,
    GoalService,
    detect_recalculation_trigger,
)


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FlakyProfileProvider:
    """Fails a fixed number of times before delegating."""

    def __init__(self, inner, failures: int) -> None:
        self._inner = inner
        self._failures = failures
        self.calls = 0

    async def get_profile(self, user_id):
        self.calls += 1
        if self.calls <= self._failures:
            raise ConnectionError("profile store unavailable")
        return await self._inner.get_profile(user_id)

    @property
    def data_source(self):
        return "flaky"


class FailingGoalStore:
    async def save_goals(self, goals):
        raise OSError("disk full")

    async def get_goals(self, user_id):
        return None


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def service(profile_provider, goal_store, orchestrator, sleep) -> GoalService:
    return GoalService(profile_provider, goal_store, orchestrator, sleep=sleep)


class TestConnectorsProtocols:
    def test_in_memory_connectors_satisfy_protocols(self, profile_provider, goal_store):
        assert isinstance(profile_provider, ProfileProvider)
        assert isinstance(goal_store, GoalStore)


class TestCalculateGoals:
    def test_personalized_goals_are_stored(self, service, goal_store):
        goals = _run(service.calculate_goals("user-1"))
        assert goals.calculation_source is CalculationSource.WHO_STANDARD
        assert _run(goal_store.get_goals("user-1")) == goals

    def test_unknown_user_gets_fallback(self, service):
        goals = _run(service.calculate_goals("nobody"))
        assert goals.is_fallback
        assert goals.user_id == "nobody"

    def test_invalid_profile_gets_fallback(self, service):
        goals = _run(service.calculate_goals("user-invalid"))
        assert goals.is_fallback

    def test_store_failure_does_not_break_calculation(self, profile_provider, orchestrator, sleep):
        service = GoalService(profile_provider, FailingGoalStore(), orchestrator, sleep=sleep)
        goals = _run(service.calculate_goals("user-1"))
        assert not goals.is_fallback

    def test_works_without_store(self, profile_provider, orchestrator):
        service = GoalService(profile_provider, None, orchestrator)
        assert not _run(service.calculate_goals("user-1")).is_fallback
        assert _run(service.has_valid_goals("user-1")) is False


class TestProfileRetry:
    def test_retries_with_exponential_backoff(self, profile_provider, orchestrator, sleep):
        flaky = FlakyProfileProvider(profile_provider, failures=2)
        service = GoalService(flaky, None, orchestrator, sleep=sleep)
        goals = _run(service.calculate_goals("user-1"))
        assert not goals.is_fallback
        assert flaky.calls == 3
        assert sleep.delays == [0.5, 1.0]

    def test_gives_up_after_attempts_and_falls_back(self, profile_provider, orchestrator, sleep):
        flaky = FlakyProfileProvider(profile_provider, failures=10)
        service = GoalService(flaky, None, orchestrator, sleep=sleep)
        goals = _run(service.calculate_goals("user-1"))
        assert goals.is_fallback
        assert flaky.calls == 3
        assert sleep.delays == [0.5, 1.0]

    def test_delay_is_capped(self, profile_provider, orchestrator, sleep):
        flaky = FlakyProfileProvider(profile_provider, failures=10)
        service = GoalService(
            flaky, None, orchestrator, fetch_attempts=6, sleep=sleep,
        )
        _run(service.calculate_goals("user-1"))
        assert sleep.delays == [0.5, 1.0, 2.0, 4.0, 4.0]

    def test_rejects_zero_attempts(self, profile_provider):
        with pytest.raises(ValueError):
            GoalService(profile_provider, fetch_attempts=0)


class TestHasValidGoals:
    def test_fresh_personalized_goals(self, service):
        _run(service.calculate_goals("user-1"))
        assert _run(service.has_valid_goals("user-1")) is True

    def test_no_goals(self, service):
        assert _run(service.has_valid_goals("user-1")) is False

    def test_fallback_goals_are_not_valid(self, service):
        _run(service.calculate_goals("user-invalid"))
        assert _run(service.has_valid_goals("user-invalid")) is False

    def test_stale_goals(self, profile_provider, goal_store, orchestrator):
        later = datetime.now(timezone.utc) + timedelta(hours=25)
        service = GoalService(profile_provider, goal_store, orchestrator, clock=lambda: later)
        _run(service.calculate_goals("user-1"))
        assert _run(service.has_valid_goals("user-1")) is False


class TestRecalculationTriggers:
    def test_new_profile(self, adult_male_profile):
        assert detect_recalculation_trigger(None, adult_male_profile) == NEW_PROFILE

    def test_unchanged_profile(self, adult_male_profile):
        assert detect_recalculation_trigger(adult_male_profile, replace(adult_male_profile)) is None

    def test_became_valid(self, adult_male_profile):
        incomplete = replace(adult_male_profile, height_cm=None)
        assert detect_recalculation_trigger(incomplete, adult_male_profile) == BECAME_VALID

    def test_became_invalid(self, adult_male_profile):
        incomplete = replace(adult_male_profile, weight_kg=None)
        assert detect_recalculation_trigger(adult_male_profile, incomplete) == BECAME_INVALID

    def test_both_invalid(self, adult_male_profile):
        a = replace(adult_male_profile, weight_kg=None)
        b = replace(adult_male_profile, weight_kg=None, height_cm=None)
        assert detect_recalculation_trigger(a, b) is None

    def test_changed_fields_are_named(self, adult_male_profile):
        updated = replace(
            adult_male_profile, weight_kg=80.0, gender=Gender.FEMALE,
            birth_date=date(1996, 1, 1),
        )
        reason = detect_recalculation_trigger(adult_male_profile, updated)
        assert reason == "Profile fields changed: birth_date, gender, weight_kg"

    def test_on_profile_updated_recalculates(self, service, goal_store, adult_male_profile):
        updated = replace(adult_male_profile, weight_kg=90.0)
        goals = _run(service.on_profile_updated(adult_male_profile, updated))
        assert goals is not None
        assert goals.calories_goal > 2732
        assert _run(goal_store.get_goals("user-1")) == goals

    def test_on_profile_updated_skips_irrelevant_update(self, service, adult_male_profile):
        assert _run(service.on_profile_updated(adult_male_profile, adult_male_profile)) is None


class TestDiagnostics:
    def test_insights_and_reset(self, service):
        _run(service.calculate_goals("user-invalid"))
        insights = service.get_performance_insights()
        assert any(i.category == "Reliability" for i in insights)
        service.reset_metrics()
        assert service.get_performance_insights() == []
        assert service.get_performance_metrics().total_calculations == 0

    def test_cache_stats(self, service):
        _run(service.calculate_goals("user-1"))
        _run(service.calculate_goals("user-1"))
        stats = service.cache_stats()
        assert stats.size == 1
        assert stats.hit_rate == pytest.approx(0.5)
        assert service.sweep_expired_cache() == 0

    def test_breakdown(self, service):
        breakdown = _run(service.get_calculation_breakdown("user-older"))
        assert breakdown.calories.equation.startswith("Mifflin")
        assert _run(service.get_calculation_breakdown("user-incomplete")) is None
