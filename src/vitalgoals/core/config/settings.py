"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Vital Goals server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback so profile-derived data is not exposed to the LAN.
    goals_host: str = "127.0.0.1"
    goals_port: int = 8003
    goals_log_level: str = "info"
    # Binding to a non-loopback host is refused unless this is set (no auth layer).
    goals_allow_insecure_bind: bool = False

    # Result cache
    cache_capacity: int = 100
    cache_ttl_seconds: float = 300

    # Performance monitor
    metrics_history_size: int = 100

    # Stored goals older than this are no longer considered valid
    goal_freshness_hours: float = 24

    # Adjustment multipliers; empty means the bundled who_adjustments.yaml
    goal_constants_path: str = ""

    # Profile fetch retry
    profile_fetch_attempts: int = 3
    profile_retry_initial_delay_ms: int = 500
    profile_retry_max_delay_ms: int = 4000


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
