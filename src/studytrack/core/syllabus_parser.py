"""Syllabus text parser.

Line format (one unit per line):

    Subject Name >>> Unit Name >>> topic1, topic2, topic3

The topics segment is optional. Consecutive lines with the same subject are
grouped into one entry. Grouping only looks at the previous line, so a
subject that reappears after a different one starts a new entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import structlog

from studytrack.core.errors import SyllabusFormatError

logger = structlog.get_logger(__name__)

DELIMITER = ">>>"
TOPIC_SEPARATOR = ","

FORMAT_HINT = "Invalid format. Expected: 'Subject Name >>> Unit Name >>> topic1, topic2, topic3'"
EMPTY_MESSAGE = "No valid entries parsed from syllabus"


@dataclass
class ParsedUnit:
    """A unit read from one syllabus line."""

    unit_name: str
    topics: list[str] = field(default_factory=list)


@dataclass
class ParsedSubject:
    """A run of consecutive lines sharing a subject name."""

    subject_name: str
    units: list[ParsedUnit] = field(default_factory=list)


def _split_topics(segment: str) -> list[str]:
    return [t.strip() for t in segment.split(TOPIC_SEPARATOR) if t.strip()]


def parse_syllabus(text: str) -> list[ParsedSubject]:
    """Parse syllabus text into subject entries.

    Args:
        text: Raw syllabus text

    Returns:
        Non-empty list of ParsedSubject in input order

    Raises:
        SyllabusFormatError: If any non-blank line has no unit segment,
            or if the text contains no entries at all
    """
    entries: list[ParsedSubject] = []
    current: ParsedSubject | None = None

    for line_number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue

        parts = [p.strip() for p in stripped.split(DELIMITER)]
        if len(parts) < 2:
            logger.debug("syllabus.invalid_line", line_number=line_number)
            raise SyllabusFormatError(FORMAT_HINT)

        subject_name, unit_name = parts[0], parts[1]
        topics = _split_topics(parts[2]) if len(parts) > 2 else []

        if current is None or current.subject_name != subject_name:
            current = ParsedSubject(subject_name=subject_name)
            entries.append(current)

        current.units.append(ParsedUnit(unit_name=unit_name, topics=topics))

    if not entries:
        raise SyllabusFormatError(EMPTY_MESSAGE)

    logger.debug(
        "syllabus.parsed",
        subjects=len(entries),
        units=sum(len(e.units) for e in entries),
    )
    return entries


def render_syllabus(entries: Iterable[ParsedSubject]) -> str:
    """Render entries back into the line format.

    Blank subject/unit names and blank topics are skipped. Units without
    topics are written without the third segment.

    The line format cannot carry every name: a topic containing "," or a
    name containing ">>>" parses back differently, and adjacent entries
    with the same subject name merge into one. See render_warnings().
    """
    lines = []
    for entry in entries:
        subject_name = entry.subject_name.strip()
        if not subject_name:
            continue
        for unit in entry.units:
            unit_name = unit.unit_name.strip()
            if not unit_name:
                continue
            topics = ", ".join(t.strip() for t in unit.topics if t.strip())
            line = f"{subject_name} {DELIMITER} {unit_name}"
            if topics:
                line += f" {DELIMITER} {topics}"
            lines.append(line)
    return "\n".join(lines)


def render_warnings(entries: Iterable[ParsedSubject]) -> list[str]:
    """Describe what render_syllabus() output will not parse back as given."""
    warnings = []
    previous_subject = None
    for entry in entries:
        subject_name = entry.subject_name.strip()
        if DELIMITER in subject_name:
            warnings.append(f"Subject '{subject_name}' contains '{DELIMITER}'")
        if subject_name and subject_name == previous_subject:
            warnings.append(f"Adjacent subjects named '{subject_name}' will merge")
        for unit in entry.units:
            if DELIMITER in unit.unit_name:
                warnings.append(f"Unit '{unit.unit_name.strip()}' contains '{DELIMITER}'")
            for topic in unit.topics:
                if TOPIC_SEPARATOR in topic or DELIMITER in topic:
                    warnings.append(f"Topic '{topic.strip()}' will be split")
        if subject_name and any(u.unit_name.strip() for u in entry.units):
            previous_subject = subject_name
    return warnings
