"""Theme preference endpoints."""

from fastapi import APIRouter, Depends

from studytrack.core.tracker_service import TrackerService
from studytrack.web.deps import get_service
from studytrack.web.schemas import ThemeRequest, ThemeResponse

router = APIRouter(prefix="/api/theme", tags=["preferences"])


@router.get("", response_model=ThemeResponse)
async def get_theme(service: TrackerService = Depends(get_service)) -> ThemeResponse:
    return ThemeResponse(theme=service.get_theme())


@router.put("", response_model=ThemeResponse)
async def set_theme(
    body: ThemeRequest,
    service: TrackerService = Depends(get_service),
) -> ThemeResponse:
    return ThemeResponse(theme=service.set_theme(body.theme))
