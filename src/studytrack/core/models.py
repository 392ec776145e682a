"""Domain records for semesters, trackers and their syllabus tree.

Hierarchy: Semester > Tracker > Subject > Unit > Topic.
Tests belong to a tracker and cover units or single topics.

All ids are uuid4 strings, all timestamps are milliseconds since the epoch.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

import structlog

from studytrack.core.errors import InvalidCoverageError, InvalidTestTypeError

logger = structlog.get_logger(__name__)


def new_id() -> str:
    """Generate an opaque unique id."""
    return str(uuid.uuid4())


def current_millis() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class TestType(str, Enum):
    """Kinds of scheduled tests, stored by their string value."""

    __test__ = False  # not a pytest test class

    LAB_PRACTICAL = "lab_practical"
    CLASS_TEST = "class_test"
    ISA = "isa"
    ESA = "esa"

    @classmethod
    def parse(cls, value: str) -> TestType:
        """Strict conversion used on writes.

        Raises:
            InvalidTestTypeError: If value is not a known test type
        """
        try:
            return cls(value)
        except ValueError:
            raise InvalidTestTypeError(value) from None

    @classmethod
    def decode(cls, value: str | None) -> TestType:
        """Lenient conversion used on reads.

        Unknown or legacy values degrade to CLASS_TEST so that a bad row
        never breaks a listing.
        """
        try:
            return cls(value)
        except ValueError:
            logger.warning("test_type.unknown_value", value=value, fallback=cls.CLASS_TEST.value)
            return cls.CLASS_TEST

    def as_str(self) -> str:
        return self.value


@dataclass
class Semester:
    id: str
    name: str
    created_at: int
    updated_at: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Tracker:
    """One course being tracked within a semester.

    The total_* fields are a cache recomputed after structural changes.
    """

    id: str
    semester_id: str
    name: str
    description: str | None
    color: str | None
    total_subjects: int
    total_units: int
    total_topics: int
    created_at: int
    updated_at: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Subject:
    id: str
    tracker_id: str
    name: str
    created_at: int
    updated_at: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Unit:
    id: str
    subject_id: str
    name: str
    order: int
    created_at: int
    updated_at: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Topic:
    id: str
    unit_id: str
    name: str
    completed: bool
    order: int
    created_at: int
    updated_at: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Test:
    __test__ = False

    id: str
    tracker_id: str
    name: str
    test_type: TestType
    scheduled_date: int
    created_at: int
    updated_at: int

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["test_type"] = self.test_type.as_str()
        return result


@dataclass
class TestCoverage:
    """Links a test to a whole unit or to a single topic."""

    __test__ = False

    id: str
    test_id: str
    unit_id: str | None = None
    topic_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CoverageTarget:
    """Requested coverage when scheduling a test."""

    unit_id: str | None = None
    topic_id: str | None = None

    def __post_init__(self):
        # Blank ids mean "not set"
        self.unit_id = self.unit_id or None
        self.topic_id = self.topic_id or None

    def validate(self) -> None:
        """Check that exactly one of unit_id / topic_id is set.

        Raises:
            InvalidCoverageError: If both or neither are set
        """
        if (self.unit_id is None) == (self.topic_id is None):
            raise InvalidCoverageError(
                "Coverage must reference exactly one of unit_id or topic_id"
            )
