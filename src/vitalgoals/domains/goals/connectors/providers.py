"""Concrete ProfileProvider and GoalStore implementations."""

from __future__ import annotations

import logging
from dataclasses import replace

from vitalgoals.domains.goals.connectors.mock_data import get_mock_profile
from vitalgoals.domains.goals.domain_logic.goal_models import BiometricProfile, DailyGoals

logger = logging.getLogger(__name__)


class MockProfileProvider:
    """Uses the mock profile set. Always available."""

    async def get_profile(self, user_id: str) -> BiometricProfile | None:
        return get_mock_profile(user_id)

    @property
    def data_source(self) -> str:
        return "mock"


class InMemoryProfileProvider:
    """Profiles held in a dict. For development and tests."""

    def __init__(self, profiles: list[BiometricProfile] | None = None) -> None:
        self._profiles: dict[str, BiometricProfile] = {}
        for profile in profiles or []:
            self.put_profile(profile)

    def put_profile(self, profile: BiometricProfile) -> None:
        self._profiles[profile.user_id] = profile

    def remove_profile(self, user_id: str) -> None:
        self._profiles.pop(user_id, None)

    async def get_profile(self, user_id: str) -> BiometricProfile | None:
        profile = self._profiles.get(user_id)
        # Hand out a copy so callers cannot mutate the stored profile
        return replace(profile) if profile is not None else None

    @property
    def data_source(self) -> str:
        return "memory"


class InMemoryGoalStore:
    """Latest goals per user, held in memory."""

    def __init__(self) -> None:
        self._goals: dict[str, DailyGoals] = {}

    async def save_goals(self, goals: DailyGoals) -> None:
        self._goals[goals.user_id] = goals
        logger.debug("Stored goals for user %s", goals.user_id)

    async def get_goals(self, user_id: str) -> DailyGoals | None:
        return self._goals.get(user_id)

    def __len__(self) -> int:
        return len(self._goals)
