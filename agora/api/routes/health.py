"""
Health check endpoint.
"""

import time

import structlog
from fastapi import APIRouter, Depends

from agora import __version__
from agora.api.dependencies import get_database
from agora.api.models import ComponentHealth, HealthResponse
from agora.storage.database import Database

router = APIRouter()
logger = structlog.get_logger(__name__)


async def _check_database(db: Database) -> ComponentHealth:
    """Check database connectivity and measure latency."""
    start = time.perf_counter()
    healthy = await db.health_check()
    latency_ms = (time.perf_counter() - start) * 1000
    return ComponentHealth(
        status="healthy" if healthy else "unhealthy",
        latency_ms=round(latency_ms, 2),
    )


@router.get("/health", response_model=HealthResponse, summary="Service health")
async def health(db: Database = Depends(get_database)) -> HealthResponse:
    database = await _check_database(db)
    if database.status != "healthy":
        logger.warning("Health check degraded", component="database")
    return HealthResponse(
        status=database.status,
        version=__version__,
        components={"database": database},
    )
