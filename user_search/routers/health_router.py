"""
Health check and monitoring router.

Provides endpoints for health checks, readiness probes, and metrics.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from .. import __version__
from ..dependencies import get_user_search_service
from ..domain.exceptions import StorageException
from ..metrics import metrics_endpoint
from ..services.user_search_service import UserSearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    service: str = "user-search"
    version: str = __version__


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint - returns 200 if service is running",
)
async def health_check():
    """
    Basic health check.

    Always returns 200 OK if the service is running.
    """
    return HealthResponse(status="healthy", timestamp=_now())


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Local store unavailable"}},
    summary="Readiness check",
    description="Check that the local store answers and report what it holds",
)
async def readiness_check(
    response: Response,
    service: UserSearchService = Depends(get_user_search_service),
):
    """
    Readiness check.

    Reports the number of stored users and avatars, the deny-list size,
    and remote client statistics. Returns 503 if the local store fails.
    """
    try:
        checks = await service.status()
        ready = True
    except StorageException as e:
        logger.warning(f"Readiness check failed: {e.message}")
        checks = {"local_store": e.details}
        ready = False
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(ready=ready, checks=checks, timestamp=_now())


@router.get("/metrics", summary="Prometheus metrics", description="Prometheus metrics endpoint")
async def metrics():
    """Metrics in Prometheus text format."""
    return metrics_endpoint()
