"""Portable syllabus document used by export and import.

Shape (format version "1.0"):

    {
      "name": "...", "description": null, "color": null, "version": "1.0",
      "subjects": [{"name": "...", "units": [{"name": "...", "topics": ["..."]}]}]
    }

Unit and topic order is the array position. Completion state is not part
of the format.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from studytrack.core.errors import StudyTrackError
from studytrack.core.syllabus_parser import ParsedSubject, ParsedUnit

FORMAT_VERSION = "1.0"


class SyllabusUnitDoc(BaseModel):
    name: str
    topics: list[str] = Field(default_factory=list)


class SyllabusSubjectDoc(BaseModel):
    name: str
    units: list[SyllabusUnitDoc] = Field(default_factory=list)


class SyllabusDocument(BaseModel):
    """Exported hierarchy of one tracker."""

    name: str
    description: str | None = None
    color: str | None = None
    version: str = FORMAT_VERSION
    subjects: list[SyllabusSubjectDoc] = Field(default_factory=list)

    def to_entries(self) -> list[ParsedSubject]:
        """Convert to parser entries (for rendering as syllabus text)."""
        return [
            ParsedSubject(
                subject_name=s.name,
                units=[ParsedUnit(unit_name=u.name, topics=list(u.topics)) for u in s.units],
            )
            for s in self.subjects
        ]


def document_from_dict(data: Any) -> SyllabusDocument:
    """Validate a decoded JSON payload.

    Raises:
        StudyTrackError: If the payload does not have the document shape
    """
    try:
        return SyllabusDocument.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(p) for p in first["loc"]) or "document"
        raise StudyTrackError(f"Invalid syllabus document at '{location}': {first['msg']}") from e


def load_document(path: Path) -> SyllabusDocument:
    """Read and validate a syllabus document from a JSON file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise StudyTrackError(f"Invalid JSON in {path.name}: {e}") from e
    return document_from_dict(data)
