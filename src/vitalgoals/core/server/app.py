"""Vital Goals MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from vitalgoals.core.cache.result_cache import ResultCache
from vitalgoals.core.config.settings import Settings, get_settings
from vitalgoals.core.monitoring.performance import PerformanceMonitor
from vitalgoals.domains.goals.connectors import GoalStore, ProfileProvider
from vitalgoals.domains.goals.connectors.providers import InMemoryGoalStore, MockProfileProvider
from vitalgoals.domains.goals.domain_logic.fallback_generator import FallbackGoalGenerator
from vitalgoals.domains.goals.domain_logic.goal_constants import load_goal_constants
from vitalgoals.domains.goals.domain_logic.goal_service import GoalService
from vitalgoals.domains.goals.domain_logic.orchestrator import GoalCalculationOrchestrator
from vitalgoals.domains.goals.tools.goal_tools import register_goal_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "Vital Goals"
SERVER_VERSION = "0.1.0"


def create_app(
    *,
    profile_provider_override: ProfileProvider | None = None,
    goal_store_override: GoalStore | None = None,
    settings_override: Settings | None = None,
) -> FastMCP:
    """Create and configure the Vital Goals MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the adjustment constants
    3. Builds the cache, monitor, fallback generator and orchestrator
    4. Initializes the profile provider and goal store (mock/in-memory by default)
    5. Registers all tools
    """
    settings = settings_override or get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Daily wellness goals server. Calculates personalized steps, calorie "
            "and heart points goals from WHO guidelines, with safe fallback goals "
            "when a profile is incomplete."
        ),
    )

    # --- Calculation engine ---
    constants = load_goal_constants(settings.goal_constants_path or None)
    cache = ResultCache(
        capacity=settings.cache_capacity,
        ttl_seconds=settings.cache_ttl_seconds,
    )
    monitor = PerformanceMonitor(history_size=settings.metrics_history_size)
    orchestrator = GoalCalculationOrchestrator(
        cache=cache,
        monitor=monitor,
        fallback_generator=FallbackGoalGenerator(constants),
        constants=constants,
    )

    # --- Connectors ---
    if profile_provider_override is not None:
        profile_provider = profile_provider_override
    else:
        profile_provider = MockProfileProvider()
        logger.info("Using mock profile provider")

    goal_store = goal_store_override if goal_store_override is not None else InMemoryGoalStore()

    service = GoalService(
        profile_provider,
        goal_store,
        orchestrator,
        freshness_hours=settings.goal_freshness_hours,
        fetch_attempts=settings.profile_fetch_attempts,
        retry_initial_delay_ms=settings.profile_retry_initial_delay_ms,
        retry_max_delay_ms=settings.profile_retry_max_delay_ms,
    )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "constants_version": constants.version,
            "profile_source": profile_provider.data_source,
            "cache_capacity": cache.capacity,
        }

    register_goal_tools(server, service)
    logger.info("Goal tools registered (constants v%s)", constants.version)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
