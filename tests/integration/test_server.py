"""Integration tests for the Vital Goals MCP server."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from vitalgoals.core.config.settings import Settings
from vitalgoals.core.server.app import create_app
from vitalgoals.core.server.main import _check_bind_address, _is_loopback_host


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _payload(result) -> dict:
    """Decode the JSON text block returned by a tool call."""
    content = getattr(result, "content", result)
    return json.loads(content[0].text)


ALL_EXPECTED_TOOLS = [
    "health_check",
    "calculate_daily_goals",
    "has_valid_goals",
    "goal_calculation_breakdown",
    "performance_insights",
    "reset_performance_metrics",
    "cache_stats",
]


@pytest.fixture
def client(profile_provider, goal_store):
    """Create an MCP client connected to a server with in-memory connectors."""
    mcp = create_app(
        profile_provider_override=profile_provider,
        goal_store_override=goal_store,
        settings_override=Settings(cache_capacity=10),
    )
    return Client(mcp)


def test_server_starts_and_lists_tools(client):
    """Server should start and expose all registered tools."""
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_health_check_returns_ok(client):
    async def _check():
        async with client:
            result = await client.call_tool("health_check", {})
            text = str(result)
            assert "ok" in text
            assert "constants_version" in text
    _run(_check())


def test_calculate_daily_goals_personalized(client):
    async def _check():
        async with client:
            result = await client.call_tool("calculate_daily_goals", {"user_id": "user-1"})
            data = _payload(result)
            assert data["calculation_source"] == "WHO_STANDARD"
            assert data["steps_goal"] == 10500
            assert data["calories_goal"] == 2732
            assert data["heart_points_goal"] == 21
            assert "explanation" not in data
    _run(_check())


def test_calculate_daily_goals_fallback(client):
    async def _check():
        async with client:
            result = await client.call_tool("calculate_daily_goals", {"user_id": "user-invalid"})
            data = _payload(result)
            assert data["calculation_source"] == "FALLBACK_DEFAULT"
            assert 6000 <= data["steps_goal"] <= 9000
            assert "WHO health guidelines" in data["explanation"]
    _run(_check())


def test_fallback_explanation_matches_failure_reason(client):
    async def _check():
        async with client:
            missing = _payload(await client.call_tool(
                "calculate_daily_goals", {"user_id": "user-incomplete"}
            ))
            assert missing["fallback_reason"] == "Missing required data"
            assert missing["explanation"].endswith(
                "age, gender, and physical characteristics."
            )

            invalid = _payload(await client.call_tool(
                "calculate_daily_goals", {"user_id": "user-invalid"}
            ))
            assert invalid["fallback_reason"] == "Invalid input data"
            assert invalid["explanation"].endswith(
                "height, weight, and birthday information."
            )
    _run(_check())


def test_blank_user_id_is_rejected(client):
    async def _check():
        async with client:
            with pytest.raises(ToolError):
                await client.call_tool("calculate_daily_goals", {"user_id": "  "})
    _run(_check())


def test_has_valid_goals_after_calculation(client):
    async def _check():
        async with client:
            before = _payload(await client.call_tool("has_valid_goals", {"user_id": "user-1"}))
            assert before["has_valid_goals"] is False
            await client.call_tool("calculate_daily_goals", {"user_id": "user-1"})
            after = _payload(await client.call_tool("has_valid_goals", {"user_id": "user-1"}))
            assert after["has_valid_goals"] is True
    _run(_check())


def test_goal_calculation_breakdown(client):
    async def _check():
        async with client:
            ok = _payload(await client.call_tool(
                "goal_calculation_breakdown", {"user_id": "user-older"}
            ))
            assert ok["status"] == "ok"
            assert ok["profile"]["age_band"] == "older_adult"
            assert "Mifflin-St Jeor" in ok["explanation"]

            missing = _payload(await client.call_tool(
                "goal_calculation_breakdown", {"user_id": "user-incomplete"}
            ))
            assert missing["status"] == "unavailable"
    _run(_check())


def test_performance_insights_and_reset(client):
    async def _check():
        async with client:
            await client.call_tool("calculate_daily_goals", {"user_id": "user-invalid"})
            report = _payload(await client.call_tool("performance_insights", {}))
            assert report["metrics"]["failed_calculations"] == 1
            assert any(i["category"] == "Reliability" for i in report["insights"])

            await client.call_tool("reset_performance_metrics", {})
            report = _payload(await client.call_tool("performance_insights", {}))
            assert report["metrics"]["total_calculations"] == 0
            assert report["insights"] == []
    _run(_check())


def test_cache_stats(client):
    async def _check():
        async with client:
            await client.call_tool("calculate_daily_goals", {"user_id": "user-1"})
            await client.call_tool("calculate_daily_goals", {"user_id": "user-1"})
            stats = _payload(await client.call_tool("cache_stats", {}))
            assert stats["size"] == 1
            assert stats["capacity"] == 10
            assert stats["hit_rate"] == 0.5
    _run(_check())


def test_default_app_uses_mock_profiles():
    async def _check():
        async with Client(create_app()) as client:
            data = _payload(await client.call_tool(
                "calculate_daily_goals", {"user_id": "mock-teen"}
            ))
            assert data["calculation_source"] == "WHO_STANDARD"
            assert 13000 <= data["steps_goal"] <= 13200
    _run(_check())


@pytest.mark.parametrize("host,expected", [
    ("127.0.0.1", True),
    ("localhost", True),
    ("::1", True),
    ("0.0.0.0", False),
    ("example.com", False),
])
def test_loopback_detection(host, expected):
    assert _is_loopback_host(host) is expected


def test_public_bind_is_refused_without_opt_in():
    with pytest.raises(RuntimeError, match="GOALS_ALLOW_INSECURE_BIND"):
        _check_bind_address(Settings(goals_host="0.0.0.0"))
    _check_bind_address(Settings(goals_host="0.0.0.0", goals_allow_insecure_bind=True))
    _check_bind_address(Settings(goals_host="localhost"))
