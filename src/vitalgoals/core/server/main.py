"""Serve the daily goals tools over Streamable HTTP.

Run with ``vitalgoals-server`` or ``python -m vitalgoals.core.server.main``.
Host, port and log level come from ``GOALS_*`` environment variables.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from vitalgoals.core.config.settings import Settings, get_settings
from vitalgoals.core.server.app import create_app

logger = logging.getLogger(__name__)


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def _check_bind_address(settings: Settings) -> None:
    """Profiles are biometric data and the server has no auth layer."""
    if settings.goals_allow_insecure_bind or _is_loopback_host(settings.goals_host):
        return
    raise RuntimeError(
        f"Goals server would listen on {settings.goals_host}, which is reachable from "
        "other machines, and it has no authentication. "
        "Use a loopback host or set GOALS_ALLOW_INSECURE_BIND=true."
    )


def run() -> None:
    """Configure logging, check the bind address and serve until stopped."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.goals_log_level.upper(), logging.INFO))
    _check_bind_address(settings)

    logger.info(
        "Serving daily goals on http://%s:%d (cache %d entries, %.0fs TTL)",
        settings.goals_host,
        settings.goals_port,
        settings.cache_capacity,
        settings.cache_ttl_seconds,
    )
    create_app(settings_override=settings).run(
        transport="streamable-http",
        host=settings.goals_host,
        port=settings.goals_port,
    )


if __name__ == "__main__":
    run()
