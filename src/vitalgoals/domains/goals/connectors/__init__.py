"""Goal connectors: abstraction layer for profile retrieval and goal storage."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from vitalgoals.domains.goals.domain_logic.goal_models import BiometricProfile, DailyGoals


@runtime_checkable
class ProfileProvider(Protocol):
    """Source of biometric profiles.

    The goal service calls this without knowing whether profiles come from
    a user database, an onboarding flow, or mock generators.
    """

    async def get_profile(self, user_id: str) -> BiometricProfile | None:
        """Profile for ``user_id``, or None if the user has none."""
        ...

    @property
    def data_source(self) -> str:
        """Label for the active data source: 'memory' or 'mock'."""
        ...


@runtime_checkable
class GoalStore(Protocol):
    """Persistence hand-off for calculated goals."""

    async def save_goals(self, goals: DailyGoals) -> None:
        ...

    async def get_goals(self, user_id: str) -> DailyGoals | None:
        ...
