"""Shared FastAPI dependencies."""

from fastapi import Request

from studytrack.core.tracker_service import TrackerService


def get_service(request: Request) -> TrackerService:
    """Service attached to the app, opened from config on first use."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        service = TrackerService.from_config()
        request.app.state.service = service
    return service
