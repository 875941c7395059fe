"""
Unit tests for health checks.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from mdb_store.observability.health import (HealthChecker, HealthCheckResult,
                                            HealthStatus, check_mongodb_health,
                                            check_store_health)


@pytest.mark.unit
class TestCheckMongoDBHealth:
    """Test the MongoDB ping check."""

    @pytest.mark.asyncio
    async def test_no_client(self):
        """Test the check without a client."""
        result = await check_mongodb_health(None)

        assert result.status == HealthStatus.UNHEALTHY

    @pytest.mark.asyncio
    async def test_healthy(self, mock_mongo_client):
        """Test a successful ping."""
        result = await check_mongodb_health(mock_mongo_client)

        assert result.status == HealthStatus.HEALTHY
        mock_mongo_client["admin"].command.assert_awaited_once_with("ping")

    @pytest.mark.asyncio
    async def test_connection_failure(self, mock_mongo_client):
        """Test that a connection failure is unhealthy."""
        mock_mongo_client["admin"].command.side_effect = ServerSelectionTimeoutError("down")

        result = await check_mongodb_health(mock_mongo_client)

        assert result.status == HealthStatus.UNHEALTHY
        assert "down" in result.message

    @pytest.mark.asyncio
    async def test_timeout(self, mock_mongo_client):
        """Test that a slow ping times out as unhealthy."""
        async def slow_ping(*args, **kwargs):
            await asyncio.sleep(1)

        mock_mongo_client["admin"].command = slow_ping

        result = await check_mongodb_health(mock_mongo_client, timeout_seconds=0.01)

        assert result.status == HealthStatus.UNHEALTHY
        assert "timed out" in result.message


@pytest.mark.unit
class TestCheckStoreHealth:
    """Test the Store ping check."""

    @pytest.mark.asyncio
    async def test_no_store(self):
        """Test the check without a store."""
        assert (await check_store_health(None)).status == HealthStatus.UNHEALTHY

    @pytest.mark.asyncio
    async def test_healthy_store(self, store):
        """Test a reachable store."""
        result = await check_store_health(store)

        assert result.status == HealthStatus.HEALTHY
        assert result.details == {"hosts": ["127.0.0.1"]}

    @pytest.mark.asyncio
    async def test_unreachable_store(self, store, mock_mongo_client):
        """Test an unreachable store."""
        mock_mongo_client["admin"].command.side_effect = ServerSelectionTimeoutError("down")

        assert (await check_store_health(store)).status == HealthStatus.UNHEALTHY


@pytest.mark.unit
class TestHealthChecker:
    """Test combining registered checks."""

    @staticmethod
    def _check(status):
        return AsyncMock(return_value=HealthCheckResult(name="c", status=status, message=""))

    @pytest.mark.asyncio
    async def test_all_healthy(self):
        """Test overall status when every check is healthy."""
        checker = HealthChecker()
        checker.register_check(self._check(HealthStatus.HEALTHY))
        checker.register_check(self._check(HealthStatus.HEALTHY))

        result = await checker.check_all()

        assert result["status"] == "healthy"
        assert len(result["checks"]) == 2

    @pytest.mark.asyncio
    async def test_unhealthy_wins(self):
        """Test that one unhealthy check makes the result unhealthy."""
        checker = HealthChecker()
        checker.register_check(self._check(HealthStatus.DEGRADED))
        checker.register_check(self._check(HealthStatus.UNHEALTHY))

        assert (await checker.check_all())["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_degraded(self):
        """Test overall degraded status."""
        checker = HealthChecker()
        checker.register_check(self._check(HealthStatus.HEALTHY))
        checker.register_check(self._check(HealthStatus.DEGRADED))

        assert (await checker.check_all())["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_failing_check_is_unknown(self):
        """Test that a raising check is reported as unknown."""
        failing = AsyncMock(side_effect=RuntimeError("broken"))
        failing.__name__ = "failing"
        checker = HealthChecker()
        checker.register_check(failing)

        result = await checker.check_all()

        assert result["status"] == "unknown"
        assert result["checks"][0]["name"] == "failing"
        assert "broken" in result["checks"][0]["message"]

    def test_result_to_dict(self):
        """Test HealthCheckResult serialization."""
        data = HealthCheckResult(
            name="mongodb", status=HealthStatus.HEALTHY, message="ok", details={"a": 1}
        ).to_dict()

        assert data["status"] == "healthy"
        assert data["details"] == {"a": 1}
        assert "timestamp" in data
