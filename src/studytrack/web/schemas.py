"""Pydantic schemas for Web API.

Request bodies and response models for semesters, trackers, the syllabus
tree, progress and tests.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from studytrack.core.models import TestType


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================


class NameRequest(BaseModel):
    """Request body carrying just a name (create or rename)."""

    name: str = Field(..., min_length=1, max_length=200)


class TrackerCreate(BaseModel):
    """Request body for creating a tracker from syllabus text."""

    name: str = Field(..., min_length=1, max_length=200)
    syllabus_text: str
    description: str | None = None
    color: str | None = None


class CoverageInput(BaseModel):
    """One coverage target: a unit or a single topic."""

    unit_id: str | None = None
    topic_id: str | None = None


class TestScheduleRequest(BaseModel):
    """Request body for scheduling a test."""

    name: str = Field(..., min_length=1, max_length=200)
    test_type: str
    scheduled_date: int = Field(..., description="Milliseconds since the epoch")
    coverage: list[CoverageInput] = Field(default_factory=list)


class ThemeRequest(BaseModel):
    theme: str


# =============================================================================
# ENTITY SCHEMAS
# =============================================================================


class SemesterResponse(BaseModel):
    id: str
    name: str
    created_at: int
    updated_at: int


class SemesterListResponse(BaseModel):
    semesters: list[SemesterResponse]
    count: int


class TrackerResponse(BaseModel):
    id: str
    semester_id: str
    name: str
    description: str | None = None
    color: str | None = None
    total_subjects: int
    total_units: int
    total_topics: int
    created_at: int
    updated_at: int


class TrackerListResponse(BaseModel):
    trackers: list[TrackerResponse]
    count: int


class SubjectResponse(BaseModel):
    id: str
    tracker_id: str
    name: str
    created_at: int
    updated_at: int


class UnitResponse(BaseModel):
    id: str
    subject_id: str
    name: str
    order: int
    created_at: int
    updated_at: int


class TopicResponse(BaseModel):
    id: str
    unit_id: str
    name: str
    completed: bool
    order: int
    created_at: int
    updated_at: int


class TestResponse(BaseModel):
    id: str
    tracker_id: str
    name: str
    test_type: TestType
    scheduled_date: int
    created_at: int
    updated_at: int


class TestListResponse(BaseModel):
    tests: list[TestResponse]
    count: int


class CoverageResponse(BaseModel):
    id: str
    test_id: str
    unit_id: str | None = None
    topic_id: str | None = None


class TestDetailsResponse(BaseModel):
    """A test with resolved coverage and countdown."""

    test: TestResponse
    coverage: list[CoverageResponse]
    covered_topics: list[str]
    days_remaining: int
    time_remaining: str


# =============================================================================
# TRACKER DATA SCHEMAS
# =============================================================================


class UnitDataResponse(BaseModel):
    unit: UnitResponse
    topics: list[TopicResponse]


class SubjectDataResponse(BaseModel):
    subject: SubjectResponse
    units: list[UnitDataResponse]


class UnitProgressResponse(BaseModel):
    unit_id: str
    unit_name: str
    total_topics: int
    completed_topics: int
    percentage: float


class SubjectProgressResponse(BaseModel):
    subject_id: str
    subject_name: str
    total_topics: int
    completed_topics: int
    percentage: float
    units: list[UnitProgressResponse]


class TrackerProgressResponse(BaseModel):
    tracker_id: str
    total_topics: int
    completed_topics: int
    percentage: float
    subjects: list[SubjectProgressResponse]


class TrackerDataResponse(BaseModel):
    """Full dashboard payload of a tracker."""

    tracker: TrackerResponse
    subjects: list[SubjectDataResponse]
    progress: TrackerProgressResponse
    all_tests: list[TestResponse]
    priority_tests: list[TestDetailsResponse]


# =============================================================================
# MISC SCHEMAS
# =============================================================================


class ThemeResponse(BaseModel):
    theme: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    database: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
