"""
Health check implementations for the application.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import redis.asyncio as redis
from sqlalchemy import text

from dispatch_portal.config.database import get_session_factory
from dispatch_portal.config.logging import get_logger
from dispatch_portal.config.settings import settings

logger = get_logger(__name__)


class HealthChecker:
    """Health checker for application components."""

    def __init__(self, storage_backend: Optional[str] = None, check_broker: Optional[bool] = None):
        self.storage_backend = storage_backend
        self.checks = {
            "storage": self._check_storage,
        }
        if settings.HEALTH_CHECK_BROKER if check_broker is None else check_broker:
            self.checks["broker"] = self._check_broker

    @property
    def backend(self) -> str:
        return self.storage_backend or settings.STORAGE_BACKEND

    async def run_health_checks(self) -> Dict[str, Any]:
        """Run all health checks."""
        results = {}

        for check_name, check_func in self.checks.items():
            try:
                results[check_name] = await check_func()
            except Exception as e:
                logger.error("Health check failed", check_name=check_name, error=str(e))
                results[check_name] = {"status": "error", "error": str(e)}

        return results

    async def _check_storage(self) -> Dict[str, Any]:
        """Check the configured storage backend."""
        if self.backend == "memory":
            return {"status": "healthy", "backend": "memory"}

        start_time = time.perf_counter()
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))

        return {
            "status": "healthy",
            "backend": "sql",
            "response_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
        }

    async def _check_broker(self) -> Dict[str, Any]:
        """Check the Redis broker used by the SLA reclaim job."""
        start_time = time.perf_counter()
        client = redis.from_url(settings.CELERY_BROKER_URL)
        try:
            await client.ping()
        finally:
            await client.aclose()

        return {
            "status": "healthy",
            "response_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
        }

    async def get_overall_health(self) -> Dict[str, Any]:
        """Get overall application health status."""
        health_results = await self.run_health_checks()
        all_healthy = all(
            result.get("status") == "healthy" for result in health_results.values()
        )

        return {
            "status": "healthy" if all_healthy else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": health_results,
        }


# Global health checker instance
health_checker = HealthChecker()


async def get_application_health() -> Dict[str, Any]:
    """Get application health status."""
    return await health_checker.get_overall_health()
