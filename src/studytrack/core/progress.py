"""Completion progress for a tracker.

Counts topics bottom-up (unit > subject > tracker) on every call. Nothing is
cached; the result reflects storage at the time of each read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from studytrack.core.store import SyllabusStore


def percentage(completed: int, total: int) -> float:
    """Completed share in percent, 0.0 when there is nothing to complete."""
    if total <= 0:
        return 0.0
    return completed / total * 100.0


@dataclass
class UnitProgress:
    unit_id: str
    unit_name: str
    total_topics: int
    completed_topics: int
    percentage: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "unit_id": self.unit_id,
            "unit_name": self.unit_name,
            "total_topics": self.total_topics,
            "completed_topics": self.completed_topics,
            "percentage": self.percentage,
        }


@dataclass
class SubjectProgress:
    subject_id: str
    subject_name: str
    total_topics: int
    completed_topics: int
    percentage: float
    units: list[UnitProgress] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "subject_name": self.subject_name,
            "total_topics": self.total_topics,
            "completed_topics": self.completed_topics,
            "percentage": self.percentage,
            "units": [u.to_dict() for u in self.units],
        }


@dataclass
class TrackerProgress:
    tracker_id: str
    total_topics: int
    completed_topics: int
    percentage: float
    subjects: list[SubjectProgress] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tracker_id": self.tracker_id,
            "total_topics": self.total_topics,
            "completed_topics": self.completed_topics,
            "percentage": self.percentage,
            "subjects": [s.to_dict() for s in self.subjects],
        }


def compute_tracker_progress(store: SyllabusStore, tracker_id: str) -> TrackerProgress:
    """Aggregate topic completion for every unit and subject of a tracker.

    Args:
        store: Storage providing list_subjects/list_units/list_topics
        tracker_id: Tracker to aggregate

    Returns:
        TrackerProgress holding per-subject and per-unit breakdowns
    """
    total_topics = 0
    completed_topics = 0
    subjects_progress = []

    for subject in store.list_subjects(tracker_id):
        subject_total = 0
        subject_completed = 0
        units_progress = []

        for unit in store.list_units(subject.id):
            topics = store.list_topics(unit.id)
            unit_total = len(topics)
            unit_completed = sum(1 for t in topics if t.completed)

            subject_total += unit_total
            subject_completed += unit_completed

            units_progress.append(
                UnitProgress(
                    unit_id=unit.id,
                    unit_name=unit.name,
                    total_topics=unit_total,
                    completed_topics=unit_completed,
                    percentage=percentage(unit_completed, unit_total),
                )
            )

        total_topics += subject_total
        completed_topics += subject_completed

        subjects_progress.append(
            SubjectProgress(
                subject_id=subject.id,
                subject_name=subject.name,
                total_topics=subject_total,
                completed_topics=subject_completed,
                percentage=percentage(subject_completed, subject_total),
                units=units_progress,
            )
        )

    return TrackerProgress(
        tracker_id=tracker_id,
        total_topics=total_topics,
        completed_topics=completed_topics,
        percentage=percentage(completed_topics, total_topics),
        subjects=subjects_progress,
    )
