"""
Health check endpoints
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from llamanator.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)
router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def health_check(request: Request):
    """
    Basic health check endpoint

    Returns:
        dict: Health status
    """
    return {
        "status": "healthy",
        "timestamp": _now(),
        "service": request.app.state.settings.app_name,
        "templates": len(request.app.state.gateway_service.registry),
    }


@router.get("/health/readiness")
async def readiness_check(request: Request):
    """
    Readiness check - is the backend reachable?

    Returns:
        dict: Readiness status
    """
    client = request.app.state.gateway_service.client
    if not await client.health_check():
        logger.warning("Readiness check failed: backend not reachable")
        return {
            "status": "not_ready",
            "message": "Backend is not reachable",
            "timestamp": _now(),
        }
    return {
        "status": "ready",
        "message": "Service is ready to accept traffic",
        "timestamp": _now(),
    }
