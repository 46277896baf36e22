"""
Health check endpoints for the application.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response

from dispatch_portal.config.logging import get_logger
from dispatch_portal.infrastructure.monitoring.health_checks import health_checker
from dispatch_portal.infrastructure.monitoring.metrics import (
    get_metrics,
    get_metrics_content_type,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
async def health_check() -> Dict[str, Any]:
    """Health check including the storage backend."""
    health = await health_checker.get_overall_health()
    if health["status"] != "healthy":
        logger.warning("Health check reported unhealthy", services=health["services"])
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service unhealthy"
        )
    return health


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Liveness check for Kubernetes."""
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/metrics")
async def prometheus_metrics() -> Response:
    """Prometheus metrics endpoint."""
    logger.debug("Prometheus metrics requested")
    return Response(content=get_metrics(), media_type=get_metrics_content_type())
