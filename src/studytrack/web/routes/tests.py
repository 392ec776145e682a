"""Test detail endpoint."""

from fastapi import APIRouter, Depends, HTTPException, status

from studytrack.core.tracker_service import TrackerService
from studytrack.web.deps import get_service
from studytrack.web.schemas import TestDetailsResponse

router = APIRouter(prefix="/api/tests", tags=["tests"])


@router.get("/{test_id}", response_model=TestDetailsResponse)
async def get_test_details(
    test_id: str,
    service: TrackerService = Depends(get_service),
) -> TestDetailsResponse:
    """Get a test with its covered topics and time remaining."""
    details = service.get_test_details(test_id)
    if details is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Test '{test_id}' not found",
        )
    return TestDetailsResponse.model_validate(details.to_dict())
