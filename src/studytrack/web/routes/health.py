"""Health check endpoint."""

import structlog
from fastapi import APIRouter, Depends

from studytrack.core.errors import StorageError
from studytrack.core.tracker_service import TrackerService
from studytrack.web.deps import get_service
from studytrack.web.schemas import HealthResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(service: TrackerService = Depends(get_service)) -> HealthResponse:
    """Report API status and whether the database answers."""
    try:
        with service.database.session() as conn:
            conn.execute("SELECT 1")
        database = "ok"
    except StorageError as e:
        logger.warning("health.database_unavailable", error=e.message)
        database = "unavailable"

    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        database=database,
    )
