"""Tracker endpoints: detail, dashboard data, export, subjects and tests."""

from fastapi import APIRouter, Depends, HTTPException, status

from studytrack.core.models import CoverageTarget
from studytrack.core.syllabus_document import SyllabusDocument
from studytrack.core.tracker_service import TrackerService
from studytrack.web.deps import get_service
from studytrack.web.schemas import (
    NameRequest,
    SubjectResponse,
    TestListResponse,
    TestResponse,
    TestScheduleRequest,
    TrackerDataResponse,
    TrackerResponse,
)

router = APIRouter(prefix="/api/trackers", tags=["trackers"])


def _not_found(tracker_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Tracker '{tracker_id}' not found",
    )


@router.get("/{tracker_id}", response_model=TrackerResponse)
async def get_tracker(
    tracker_id: str,
    service: TrackerService = Depends(get_service),
) -> TrackerResponse:
    """Get a tracker with its cached totals."""
    tracker = service.get_tracker(tracker_id)
    if tracker is None:
        raise _not_found(tracker_id)
    return TrackerResponse(**tracker.to_dict())


@router.delete("/{tracker_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tracker(
    tracker_id: str,
    service: TrackerService = Depends(get_service),
) -> None:
    """Delete a tracker with its syllabus and tests."""
    if not service.delete_tracker(tracker_id):
        raise _not_found(tracker_id)


@router.get("/{tracker_id}/data", response_model=TrackerDataResponse)
async def get_tracker_data(
    tracker_id: str,
    service: TrackerService = Depends(get_service),
) -> TrackerDataResponse:
    """Syllabus tree, progress, all tests and priority tests."""
    data = service.get_tracker_data(tracker_id)
    if data is None:
        raise _not_found(tracker_id)
    return TrackerDataResponse.model_validate(data.to_dict())


@router.get("/{tracker_id}/export", response_model=SyllabusDocument)
async def export_syllabus(
    tracker_id: str,
    service: TrackerService = Depends(get_service),
) -> SyllabusDocument:
    """Export the tracker's syllabus as a portable document."""
    return service.export_syllabus(tracker_id)


@router.post(
    "/{tracker_id}/subjects",
    response_model=SubjectResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_subject(
    tracker_id: str,
    body: NameRequest,
    service: TrackerService = Depends(get_service),
) -> SubjectResponse:
    """Add an empty subject to the tracker."""
    subject = service.create_subject(tracker_id, body.name)
    return SubjectResponse(**subject.to_dict())


@router.get("/{tracker_id}/tests", response_model=TestListResponse)
async def list_tests(
    tracker_id: str,
    service: TrackerService = Depends(get_service),
) -> TestListResponse:
    """List the tracker's tests by date."""
    tests = [TestResponse(**t.to_dict()) for t in service.list_tests(tracker_id)]
    return TestListResponse(tests=tests, count=len(tests))


@router.post(
    "/{tracker_id}/tests",
    response_model=TestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def schedule_test(
    tracker_id: str,
    body: TestScheduleRequest,
    service: TrackerService = Depends(get_service),
) -> TestResponse:
    """Schedule a test with its coverage."""
    test = service.schedule_test(
        tracker_id,
        body.name,
        body.test_type,
        body.scheduled_date,
        [CoverageTarget(unit_id=c.unit_id, topic_id=c.topic_id) for c in body.coverage],
    )
    return TestResponse(**test.to_dict())
