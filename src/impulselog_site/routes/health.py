"""
Liveness/readiness probe.

`GET /health` reports `healthy` with the database state. The database is only required when it
is configured: a deployment that reads through the Data API alone stays healthy.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from impulselog_site.config import settings
from impulselog_site.database import db_manager
from impulselog_site.managers.logging_manager import get_logger

logger = get_logger(prefix="[Health]")

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Check service health.

    Returns:
        JSONResponse: `{"status", "database"}`; 503 when a configured database does not answer.
    """
    if not settings.mongodb_configured:
        return {"status": "healthy", "database": "not_configured"}

    if await db_manager.health_check():
        return {"status": "healthy", "database": "connected"}

    logger.warning("Health check failed: database unavailable")
    return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unavailable"})
