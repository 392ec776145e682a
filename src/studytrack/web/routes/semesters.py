"""Semester endpoints, including tracker creation and import."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from studytrack.core.syllabus_document import SyllabusDocument
from studytrack.core.tracker_service import TrackerService
from studytrack.web.deps import get_service
from studytrack.web.schemas import (
    NameRequest,
    SemesterListResponse,
    SemesterResponse,
    TrackerCreate,
    TrackerListResponse,
    TrackerResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/semesters", tags=["semesters"])


@router.get("", response_model=SemesterListResponse)
async def list_semesters(service: TrackerService = Depends(get_service)) -> SemesterListResponse:
    """List all semesters, newest first."""
    semesters = [SemesterResponse(**s.to_dict()) for s in service.list_semesters()]
    return SemesterListResponse(semesters=semesters, count=len(semesters))


@router.post("", response_model=SemesterResponse, status_code=status.HTTP_201_CREATED)
async def create_semester(
    body: NameRequest,
    service: TrackerService = Depends(get_service),
) -> SemesterResponse:
    """Create a semester."""
    semester = service.create_semester(body.name)
    return SemesterResponse(**semester.to_dict())


@router.delete("/{semester_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_semester(
    semester_id: str,
    service: TrackerService = Depends(get_service),
) -> None:
    """Delete a semester and everything under it."""
    if not service.delete_semester(semester_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Semester '{semester_id}' not found",
        )


@router.get("/{semester_id}/trackers", response_model=TrackerListResponse)
async def list_trackers(
    semester_id: str,
    service: TrackerService = Depends(get_service),
) -> TrackerListResponse:
    """List the trackers of a semester."""
    trackers = [TrackerResponse(**t.to_dict()) for t in service.list_trackers(semester_id)]
    return TrackerListResponse(trackers=trackers, count=len(trackers))


@router.post(
    "/{semester_id}/trackers",
    response_model=TrackerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_tracker(
    semester_id: str,
    body: TrackerCreate,
    service: TrackerService = Depends(get_service),
) -> TrackerResponse:
    """Create a tracker from syllabus text."""
    tracker = service.create_tracker(
        semester_id,
        body.name,
        body.syllabus_text,
        description=body.description,
        color=body.color,
    )
    return TrackerResponse(**tracker.to_dict())


@router.post(
    "/{semester_id}/import",
    response_model=TrackerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def import_syllabus(
    semester_id: str,
    document: SyllabusDocument,
    service: TrackerService = Depends(get_service),
) -> TrackerResponse:
    """Create a tracker from an exported syllabus document."""
    tracker = service.import_syllabus(semester_id, document)
    logger.info("api.syllabus_imported", tracker_id=tracker.id)
    return TrackerResponse(**tracker.to_dict())
