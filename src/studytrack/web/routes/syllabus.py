"""Subject, unit and topic endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from studytrack.core.tracker_service import TrackerService
from studytrack.web.deps import get_service
from studytrack.web.schemas import (
    NameRequest,
    SubjectResponse,
    TopicResponse,
    UnitResponse,
)

router = APIRouter(prefix="/api", tags=["syllabus"])


def _not_found(entity: str, entity_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{entity} '{entity_id}' not found",
    )


# =============================================================================
# SUBJECTS
# =============================================================================


@router.patch("/subjects/{subject_id}", response_model=SubjectResponse)
async def rename_subject(
    subject_id: str,
    body: NameRequest,
    service: TrackerService = Depends(get_service),
) -> SubjectResponse:
    subject = service.update_subject(subject_id, body.name)
    if subject is None:
        raise _not_found("Subject", subject_id)
    return SubjectResponse(**subject.to_dict())


@router.delete("/subjects/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subject(
    subject_id: str,
    service: TrackerService = Depends(get_service),
) -> None:
    """Delete a subject with its units, topics and test coverage."""
    if not service.delete_subject(subject_id):
        raise _not_found("Subject", subject_id)


@router.post(
    "/subjects/{subject_id}/units",
    response_model=UnitResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_unit(
    subject_id: str,
    body: NameRequest,
    service: TrackerService = Depends(get_service),
) -> UnitResponse:
    """Append a unit to a subject."""
    unit = service.create_unit(subject_id, body.name)
    return UnitResponse(**unit.to_dict())


# =============================================================================
# UNITS
# =============================================================================


@router.patch("/units/{unit_id}", response_model=UnitResponse)
async def rename_unit(
    unit_id: str,
    body: NameRequest,
    service: TrackerService = Depends(get_service),
) -> UnitResponse:
    unit = service.update_unit(unit_id, body.name)
    if unit is None:
        raise _not_found("Unit", unit_id)
    return UnitResponse(**unit.to_dict())


@router.delete("/units/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_unit(
    unit_id: str,
    service: TrackerService = Depends(get_service),
) -> None:
    if not service.delete_unit(unit_id):
        raise _not_found("Unit", unit_id)


@router.post(
    "/units/{unit_id}/topics",
    response_model=TopicResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_topic(
    unit_id: str,
    body: NameRequest,
    service: TrackerService = Depends(get_service),
) -> TopicResponse:
    """Append a topic to a unit."""
    topic = service.create_topic(unit_id, body.name)
    return TopicResponse(**topic.to_dict())


# =============================================================================
# TOPICS
# =============================================================================


@router.patch("/topics/{topic_id}", response_model=TopicResponse)
async def rename_topic(
    topic_id: str,
    body: NameRequest,
    service: TrackerService = Depends(get_service),
) -> TopicResponse:
    topic = service.update_topic(topic_id, body.name)
    if topic is None:
        raise _not_found("Topic", topic_id)
    return TopicResponse(**topic.to_dict())


@router.delete("/topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_topic(
    topic_id: str,
    service: TrackerService = Depends(get_service),
) -> None:
    if not service.delete_topic(topic_id):
        raise _not_found("Topic", topic_id)


@router.post("/topics/{topic_id}/toggle", response_model=TopicResponse)
async def toggle_topic(
    topic_id: str,
    service: TrackerService = Depends(get_service),
) -> TopicResponse:
    """Flip a topic's completed flag."""
    topic = service.toggle_topic(topic_id)
    if topic is None:
        raise _not_found("Topic", topic_id)
    return TopicResponse(**topic.to_dict())
