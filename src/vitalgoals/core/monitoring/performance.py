"""Calculation performance monitoring.

Records timings and outcomes of goal calculations, keeps a bounded rolling
history, and derives advisory insights from fixed thresholds. Purely
diagnostic: nothing here affects a calculation result.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

import psutil

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 100

# Insight thresholds
SLOW_AVERAGE_MS = 500.0
MIN_SUCCESS_RATE = 0.95
MIN_CACHE_HIT_RATE = 0.30
HIGH_MEMORY_PERCENT = 80.0


class SampleOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    CACHE_HIT = "cache_hit"


class InsightType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class PerformanceSample:
    outcome: SampleOutcome
    duration_ms: float
    recorded_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class PerformanceInsight:
    type: InsightType
    category: str
    message: str
    recommendation: str

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type.value,
            "category": self.category,
            "message": self.message,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class PerformanceMetrics:
    """Point-in-time snapshot of the monitor's counters."""

    total_calculations: int = 0
    successful_calculations: int = 0
    failed_calculations: int = 0
    success_rate: float = 0.0
    cache_hits: int = 0
    cache_hit_rate: float = 0.0
    fallback_usages: int = 0
    average_duration_ms: float = 0.0
    min_duration_ms: float = 0.0
    max_duration_ms: float = 0.0
    failures_by_type: dict[str, int] = field(default_factory=dict)
    memory_percent: float | None = None
    recent_samples: tuple[PerformanceSample, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_calculations": self.total_calculations,
            "successful_calculations": self.successful_calculations,
            "failed_calculations": self.failed_calculations,
            "success_rate": round(self.success_rate, 4),
            "cache_hits": self.cache_hits,
            "cache_hit_rate": round(self.cache_hit_rate, 4),
            "fallback_usages": self.fallback_usages,
            "average_duration_ms": round(self.average_duration_ms, 2),
            "min_duration_ms": round(self.min_duration_ms, 2),
            "max_duration_ms": round(self.max_duration_ms, 2),
            "failures_by_type": dict(self.failures_by_type),
            "memory_percent": self.memory_percent,
            "history_size": len(self.recent_samples),
        }


def process_memory_percent() -> float:
    """Resident memory of this process as a percentage of system RAM."""
    return float(psutil.Process().memory_percent())


class PerformanceMonitor:
    """Thread-safe recorder of calculation outcomes.

    Cache hit rate is hits over all lookups (computed calculations plus
    cache hits). Success rate only counts computed calculations.
    """

    def __init__(
        self,
        history_size: int = DEFAULT_HISTORY_SIZE,
        memory_probe: Callable[[], float] = process_memory_percent,
    ) -> None:
        if history_size <= 0:
            raise ValueError("history_size must be positive")
        self._history_size = history_size
        self._memory_probe = memory_probe
        self._lock = threading.Lock()
        self._reset_unlocked()

    def _reset_unlocked(self) -> None:
        self._samples: deque[PerformanceSample] = deque(maxlen=self._history_size)
        self._total = 0
        self._successes = 0
        self._failures = 0
        self._cache_hits = 0
        self._fallbacks = 0
        self._failures_by_type: Counter[str] = Counter()
        self._memory_percent: float | None = None

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_success(self, duration_ms: float) -> None:
        with self._lock:
            self._total += 1
            self._successes += 1
            self._samples.append(PerformanceSample(SampleOutcome.SUCCESS, duration_ms))

    def record_failure(self, duration_ms: float, error: BaseException) -> None:
        with self._lock:
            self._total += 1
            self._failures += 1
            self._failures_by_type[type(error).__name__] += 1
            self._samples.append(PerformanceSample(SampleOutcome.FAILURE, duration_ms))

    def record_cache_hit(self, duration_ms: float) -> None:
        with self._lock:
            self._cache_hits += 1
            self._samples.append(PerformanceSample(SampleOutcome.CACHE_HIT, duration_ms))

    def record_fallback(self) -> None:
        """Count a fallback. Not a timing sample, so the history is unaffected."""
        with self._lock:
            self._fallbacks += 1

    def record_memory_usage(self) -> float | None:
        """Sample process memory. A failing probe is logged and ignored."""
        try:
            percent = float(self._memory_probe())
        except (OSError, psutil.Error):
            logger.warning("Memory probe failed", exc_info=True)
            return None
        with self._lock:
            self._memory_percent = percent
        return percent

    def reset(self) -> None:
        with self._lock:
            self._reset_unlocked()
        logger.info("Performance metrics reset")

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def cache_hit_rate(self) -> float:
        with self._lock:
            return self._cache_hit_rate_unlocked()

    def _cache_hit_rate_unlocked(self) -> float:
        lookups = self._total + self._cache_hits
        return self._cache_hits / lookups if lookups else 0.0

    def metrics(self) -> PerformanceMetrics:
        with self._lock:
            timings = [s.duration_ms for s in self._samples]
            return PerformanceMetrics(
                total_calculations=self._total,
                successful_calculations=self._successes,
                failed_calculations=self._failures,
                success_rate=self._successes / self._total if self._total else 0.0,
                cache_hits=self._cache_hits,
                cache_hit_rate=self._cache_hit_rate_unlocked(),
                fallback_usages=self._fallbacks,
                average_duration_ms=sum(timings) / len(timings) if timings else 0.0,
                min_duration_ms=min(timings, default=0.0),
                max_duration_ms=max(timings, default=0.0),
                failures_by_type=dict(self._failures_by_type),
                memory_percent=self._memory_percent,
                recent_samples=tuple(self._samples),
            )

    def get_insights(self) -> list[PerformanceInsight]:
        """Advisory insights. Empty until something has been recorded."""
        m = self.metrics()
        if m.total_calculations == 0 and m.cache_hits == 0:
            return []

        insights: list[PerformanceInsight] = []

        if m.average_duration_ms > SLOW_AVERAGE_MS:
            insights.append(PerformanceInsight(
                type=InsightType.WARNING,
                category="Calculation Performance",
                message=(
                    f"Average calculation time ({m.average_duration_ms:.0f}ms) "
                    f"exceeds {SLOW_AVERAGE_MS:.0f}ms target"
                ),
                recommendation=(
                    "Consider optimizing calculation algorithms or increasing cache size"
                ),
            ))

        if m.total_calculations > 0 and m.success_rate < MIN_SUCCESS_RATE:
            insights.append(PerformanceInsight(
                type=InsightType.ERROR,
                category="Reliability",
                message=(
                    f"Success rate ({int(m.success_rate * 100)}%) is below "
                    f"{int(MIN_SUCCESS_RATE * 100)}% target"
                ),
                recommendation="Investigate calculation failures and improve input validation",
            ))

        if m.cache_hit_rate < MIN_CACHE_HIT_RATE:
            insights.append(PerformanceInsight(
                type=InsightType.INFO,
                category="Cache Performance",
                message=f"Cache hit rate ({int(m.cache_hit_rate * 100)}%) could be improved",
                recommendation="Consider increasing cache size or adjusting cache expiration time",
            ))

        if m.memory_percent is not None and m.memory_percent > HIGH_MEMORY_PERCENT:
            insights.append(PerformanceInsight(
                type=InsightType.WARNING,
                category="Memory Usage",
                message=f"Memory usage ({int(m.memory_percent)}%) is high",
                recommendation="Consider reducing cache size",
            ))

        return insights
