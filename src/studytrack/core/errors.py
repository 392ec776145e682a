"""Error types raised by the study tracker.

Every error carries a single human-readable message. Outer layers (CLI, web)
show that message as-is; no structured codes cross that boundary.
"""

from __future__ import annotations


class StudyTrackError(Exception):
    """Base error for all tracker operations."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SyllabusFormatError(StudyTrackError):
    """Raised when syllabus text does not follow the line format."""

    pass


class NotFoundError(StudyTrackError):
    """Raised when an operation requires an entity that does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidTestTypeError(StudyTrackError):
    """Raised when a test type string is not one of the known values."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid test type: '{value}'")


class InvalidCoverageError(StudyTrackError):
    """Raised when a coverage target does not name exactly one unit or topic."""

    pass


class StorageError(StudyTrackError):
    """Raised when the underlying database fails."""

    pass
