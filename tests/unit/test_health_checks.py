"""
Unit tests for the health checker.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from dispatch_portal.infrastructure.monitoring.health_checks import HealthChecker


class TestHealthChecker:
    """Test cases for HealthChecker."""

    @pytest.mark.asyncio
    async def test_memory_backend_without_broker_is_healthy(self):
        checker = HealthChecker(storage_backend="memory", check_broker=False)

        health = await checker.get_overall_health()

        assert health["status"] == "healthy"
        assert set(health["services"]) == {"storage"}

    @pytest.mark.asyncio
    async def test_broker_ping(self):
        """A reachable broker reports healthy and the client is closed."""
        # Arrange
        client = MagicMock()
        client.ping = AsyncMock(return_value=True)
        client.aclose = AsyncMock()
        checker = HealthChecker(storage_backend="memory", check_broker=True)

        # Act
        with patch(
            "dispatch_portal.infrastructure.monitoring.health_checks.redis.from_url",
            return_value=client,
        ):
            health = await checker.get_overall_health()

        # Assert
        assert health["status"] == "healthy"
        assert health["services"]["broker"]["status"] == "healthy"
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_broker_marks_unhealthy(self):
        client = MagicMock()
        client.ping = AsyncMock(side_effect=ConnectionError("connection refused"))
        client.aclose = AsyncMock()
        checker = HealthChecker(storage_backend="memory", check_broker=True)

        with patch(
            "dispatch_portal.infrastructure.monitoring.health_checks.redis.from_url",
            return_value=client,
        ):
            health = await checker.get_overall_health()

        assert health["status"] == "unhealthy"
        assert health["services"]["broker"] == {
            "status": "error",
            "error": "connection refused",
        }
        client.aclose.assert_awaited_once()
