"""Error taxonomy for goal calculation.

Every error here is recoverable from the caller's point of view: the
orchestrator converts them into fallback goals instead of raising.
"""

from __future__ import annotations


class GoalCalculationError(Exception):
    """Base class for goal calculation failures."""


class ValidationError(GoalCalculationError):
    """Profile is missing required fields or holds implausible values."""

    def __init__(
        self, message: str, *, fields: list[str] | None = None, missing: bool = False
    ) -> None:
        super().__init__(message)
        self.fields = fields or []
        # True when the data was absent rather than implausible
        self.missing = missing


class GoalArithmeticError(GoalCalculationError, ArithmeticError):
    """A formula produced NaN, infinity or an overflow."""


class CacheError(GoalCalculationError):
    """Cache lookup or eviction failed; treated as a miss."""


class CatastrophicError(GoalCalculationError):
    """Anything unexpected. Only the emergency fallback recovers from it."""
