"""Read interface the progress and priority calculations depend on.

Any object providing these methods can back the calculations. The SQLite
implementation is studytrack.db.repository.TrackerRepository.
"""

from __future__ import annotations

from typing import Protocol

from studytrack.core.models import Subject, Test, TestCoverage, Topic, Unit


class SyllabusStore(Protocol):
    def list_subjects(self, tracker_id: str) -> list[Subject]:
        """Subjects of a tracker, oldest first."""
        ...

    def list_units(self, subject_id: str) -> list[Unit]:
        """Units of a subject by ascending order."""
        ...

    def list_topics(self, unit_id: str) -> list[Topic]:
        """Topics of a unit by ascending order."""
        ...

    def get_topic(self, topic_id: str) -> Topic | None:
        ...

    def list_tests_by_tracker(self, tracker_id: str) -> list[Test]:
        """Tests of a tracker by ascending scheduled date."""
        ...

    def list_coverage(self, test_id: str) -> list[TestCoverage]:
        ...
