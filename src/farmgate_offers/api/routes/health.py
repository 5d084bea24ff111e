"""Health check endpoint.

Verifies connectivity to the database and returns structured status.
Used by Docker healthchecks, load balancers, and monitoring systems.
"""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import text

from farmgate_offers.logging_config import get_logger
from farmgate_offers.schemas.offer import HealthResponse

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the application and its database.",
)
async def health_check() -> HealthResponse:
    """Check connectivity to the database."""
    from farmgate_offers.infrastructure.database.engine import _get_engine

    try:
        engine = _get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as exc:
        db_status = f"unhealthy: {exc}"
        logger.error("health.db_check_failed", error=str(exc))

    return HealthResponse(
        status="ok" if db_status == "healthy" else "degraded",
        version="0.1.0",
        database=db_status,
    )
