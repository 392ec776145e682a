"""Tracker operations used by the CLI and the web API.

Each public method is one request: it reads the clock once, takes the
database lock for its whole duration (Database.session) and either returns
a value or raises a StudyTrackError with a readable message.

Structural changes to a tracker's subjects, units or topics are followed by
a full recount of the tracker's cached totals.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Generator, Iterable

import structlog

from studytrack.config.app_config import THEMES, load_app_config
from studytrack.core.errors import InvalidCoverageError, NotFoundError, StudyTrackError
from studytrack.core.models import (
    CoverageTarget,
    Semester,
    Subject,
    Test,
    TestType,
    Topic,
    Tracker,
    Unit,
    current_millis,
    new_id,
)
from studytrack.core.priority import TestDetails, build_priority_tests, build_test_details
from studytrack.core.progress import TrackerProgress, compute_tracker_progress
from studytrack.core.syllabus_document import (
    FORMAT_VERSION,
    SyllabusDocument,
    SyllabusSubjectDoc,
    SyllabusUnitDoc,
)
from studytrack.core.syllabus_parser import ParsedSubject, parse_syllabus
from studytrack.db.database import Database, init_db
from studytrack.db.repository import TrackerRepository

logger = structlog.get_logger(__name__)

THEME_KEY = "theme"


@dataclass
class UnitData:
    unit: Unit
    topics: list[Topic] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"unit": self.unit.to_dict(), "topics": [t.to_dict() for t in self.topics]}


@dataclass
class SubjectData:
    subject: Subject
    units: list[UnitData] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"subject": self.subject.to_dict(), "units": [u.to_dict() for u in self.units]}


@dataclass
class TrackerData:
    """Everything a tracker dashboard shows, computed in one request."""

    tracker: Tracker
    subjects: list[SubjectData]
    progress: TrackerProgress
    all_tests: list[Test]
    priority_tests: list[TestDetails]

    def to_dict(self) -> dict[str, Any]:
        return {
            "tracker": self.tracker.to_dict(),
            "subjects": [s.to_dict() for s in self.subjects],
            "progress": self.progress.to_dict(),
            "all_tests": [t.to_dict() for t in self.all_tests],
            "priority_tests": [p.to_dict() for p in self.priority_tests],
        }


class TrackerService:
    """Request-level operations over one Database."""

    def __init__(self, database: Database, clock: Callable[[], int] = current_millis):
        self.database = database
        self.clock = clock

    @classmethod
    def from_config(cls) -> TrackerService:
        """Open the database named in the app config."""
        config = load_app_config()
        return cls(init_db(config.storage.db_path))

    @contextmanager
    def _repository(self) -> Generator[TrackerRepository, None, None]:
        with self.database.session() as conn:
            yield TrackerRepository(conn)

    # =========================================================================
    # SEMESTERS
    # =========================================================================

    def create_semester(self, name: str) -> Semester:
        now = self.clock()
        with self._repository() as repo:
            semester = repo.create_semester(new_id(), name, now)
        logger.info("semesters.created", semester_id=semester.id, name=name)
        return semester

    def list_semesters(self) -> list[Semester]:
        with self._repository() as repo:
            return repo.list_semesters()

    def delete_semester(self, semester_id: str) -> bool:
        """Delete a semester and everything under it."""
        with self._repository() as repo:
            deleted = repo.delete_semester(semester_id)
        if deleted:
            logger.info("semesters.deleted", semester_id=semester_id)
        return deleted

    # =========================================================================
    # TRACKERS
    # =========================================================================

    def create_tracker(
        self,
        semester_id: str,
        name: str,
        syllabus_text: str,
        description: str | None = None,
        color: str | None = None,
    ) -> Tracker:
        """Create a tracker and its syllabus tree from syllabus text.

        Raises:
            SyllabusFormatError: If the text is malformed; nothing is written
            NotFoundError: If the semester does not exist
        """
        entries = parse_syllabus(syllabus_text)
        now = self.clock()

        with self._repository() as repo:
            tracker = self._create_tracker_tree(
                repo, semester_id, name, description, color, entries, now
            )

        logger.info(
            "trackers.created",
            tracker_id=tracker.id,
            subjects=tracker.total_subjects,
            topics=tracker.total_topics,
        )
        return tracker

    def _create_tracker_tree(
        self,
        repo: TrackerRepository,
        semester_id: str,
        name: str,
        description: str | None,
        color: str | None,
        entries: Iterable[ParsedSubject],
        now: int,
    ) -> Tracker:
        if repo.get_semester(semester_id) is None:
            raise NotFoundError("Semester", semester_id)

        tracker = repo.create_tracker(new_id(), semester_id, name, description, color, now)

        for entry in entries:
            subject = repo.create_subject(new_id(), tracker.id, entry.subject_name, now)
            for unit_order, parsed_unit in enumerate(entry.units):
                unit = repo.create_unit(
                    new_id(), subject.id, parsed_unit.unit_name, unit_order, now
                )
                for topic_order, topic_name in enumerate(parsed_unit.topics):
                    repo.create_topic(new_id(), unit.id, topic_name, topic_order, now)

        repo.refresh_tracker_statistics(tracker.id, now)
        return repo.get_tracker(tracker.id)

    def list_trackers(self, semester_id: str) -> list[Tracker]:
        with self._repository() as repo:
            return repo.list_trackers(semester_id)

    def get_tracker(self, tracker_id: str) -> Tracker | None:
        with self._repository() as repo:
            return repo.get_tracker(tracker_id)

    def delete_tracker(self, tracker_id: str) -> bool:
        with self._repository() as repo:
            deleted = repo.delete_tracker(tracker_id)
        if deleted:
            logger.info("trackers.deleted", tracker_id=tracker_id)
        return deleted

    def get_tracker_data(self, tracker_id: str) -> TrackerData | None:
        """Syllabus tree, progress, tests and priority tests of a tracker.

        Returns:
            TrackerData, or None if the tracker does not exist
        """
        now = self.clock()
        with self._repository() as repo:
            tracker = repo.get_tracker(tracker_id)
            if tracker is None:
                return None

            subjects = [
                SubjectData(
                    subject=subject,
                    units=[
                        UnitData(unit=unit, topics=repo.list_topics(unit.id))
                        for unit in repo.list_units(subject.id)
                    ],
                )
                for subject in repo.list_subjects(tracker_id)
            ]
            progress = compute_tracker_progress(repo, tracker_id)
            tests = repo.list_tests_by_tracker(tracker_id)
            priority_tests = build_priority_tests(repo, tests, now)

        return TrackerData(
            tracker=tracker,
            subjects=subjects,
            progress=progress,
            all_tests=tests,
            priority_tests=priority_tests,
        )

    # =========================================================================
    # SUBJECTS / UNITS / TOPICS
    # =========================================================================

    def create_subject(self, tracker_id: str, name: str) -> Subject:
        now = self.clock()
        with self._repository() as repo:
            if repo.get_tracker(tracker_id) is None:
                raise NotFoundError("Tracker", tracker_id)
            subject = repo.create_subject(new_id(), tracker_id, name, now)
            repo.refresh_tracker_statistics(tracker_id, now)
        return subject

    def update_subject(self, subject_id: str, name: str) -> Subject | None:
        now = self.clock()
        with self._repository() as repo:
            if not repo.update_subject(subject_id, name, now):
                return None
            return repo.get_subject(subject_id)

    def delete_subject(self, subject_id: str) -> bool:
        """Delete a subject with its units, topics and their test coverage."""
        now = self.clock()
        with self._repository() as repo:
            subject = repo.get_subject(subject_id)
            if subject is None:
                return False
            repo.delete_subject(subject_id)
            repo.refresh_tracker_statistics(subject.tracker_id, now)
        return True

    def create_unit(self, subject_id: str, name: str) -> Unit:
        now = self.clock()
        with self._repository() as repo:
            subject = repo.get_subject(subject_id)
            if subject is None:
                raise NotFoundError("Subject", subject_id)
            order = repo.next_unit_order(subject_id)
            unit = repo.create_unit(new_id(), subject_id, name, order, now)
            repo.refresh_tracker_statistics(subject.tracker_id, now)
        return unit

    def update_unit(self, unit_id: str, name: str) -> Unit | None:
        now = self.clock()
        with self._repository() as repo:
            if not repo.update_unit(unit_id, name, now):
                return None
            return repo.get_unit(unit_id)

    def delete_unit(self, unit_id: str) -> bool:
        now = self.clock()
        with self._repository() as repo:
            tracker_id = repo.tracker_id_for_unit(unit_id)
            if not repo.delete_unit(unit_id):
                return False
            if tracker_id is not None:
                repo.refresh_tracker_statistics(tracker_id, now)
        return True

    def create_topic(self, unit_id: str, name: str) -> Topic:
        """Append a topic after the last one of the unit."""
        now = self.clock()
        with self._repository() as repo:
            tracker_id = repo.tracker_id_for_unit(unit_id)
            if tracker_id is None:
                raise NotFoundError("Unit", unit_id)
            order = repo.next_topic_order(unit_id)
            topic = repo.create_topic(new_id(), unit_id, name, order, now)
            repo.refresh_tracker_statistics(tracker_id, now)
        return topic

    def update_topic(self, topic_id: str, name: str) -> Topic | None:
        now = self.clock()
        with self._repository() as repo:
            if not repo.update_topic(topic_id, name, now):
                return None
            return repo.get_topic(topic_id)

    def delete_topic(self, topic_id: str) -> bool:
        now = self.clock()
        with self._repository() as repo:
            tracker_id = repo.tracker_id_for_topic(topic_id)
            if not repo.delete_topic(topic_id):
                return False
            if tracker_id is not None:
                repo.refresh_tracker_statistics(tracker_id, now)
        return True

    def toggle_topic(self, topic_id: str) -> Topic | None:
        """Flip a topic's completed flag.

        Returns:
            The updated Topic, or None if it does not exist
        """
        now = self.clock()
        with self._repository() as repo:
            topic = repo.get_topic(topic_id)
            if topic is None:
                return None
            topic.completed = not topic.completed
            topic.updated_at = now
            repo.set_topic_completed(topic_id, topic.completed, now)

        logger.debug("topics.toggled", topic_id=topic_id, completed=topic.completed)
        return topic

    # =========================================================================
    # TESTS
    # =========================================================================

    def schedule_test(
        self,
        tracker_id: str,
        name: str,
        test_type: str | TestType,
        scheduled_date: int,
        coverage: Iterable[CoverageTarget] = (),
    ) -> Test:
        """Create a test and its coverage rows together.

        Args:
            tracker_id: Tracker the test belongs to
            name: Display name
            test_type: TestType or its stored string ("isa", "esa", ...)
            scheduled_date: Test time in ms since the epoch
            coverage: Units and/or topics the test covers

        Raises:
            InvalidTestTypeError: Unknown test type; nothing is written
            InvalidCoverageError: A target is malformed or outside the tracker
            NotFoundError: The tracker or a covered unit/topic is missing
        """
        if not isinstance(test_type, TestType):
            test_type = TestType.parse(test_type)
        targets = list(coverage)
        for target in targets:
            target.validate()

        now = self.clock()
        with self._repository() as repo:
            if repo.get_tracker(tracker_id) is None:
                raise NotFoundError("Tracker", tracker_id)
            for target in targets:
                self._check_coverage_target(repo, tracker_id, target)

            test = repo.create_test(new_id(), tracker_id, name, test_type, scheduled_date, now)
            for target in targets:
                repo.create_coverage(new_id(), test.id, target.unit_id, target.topic_id)

        logger.info(
            "tests.scheduled",
            test_id=test.id,
            tracker_id=tracker_id,
            test_type=test_type.value,
            coverage=len(targets),
        )
        return test

    @staticmethod
    def _check_coverage_target(
        repo: TrackerRepository, tracker_id: str, target: CoverageTarget
    ) -> None:
        if target.unit_id:
            owner = repo.tracker_id_for_unit(target.unit_id)
            entity, entity_id = "Unit", target.unit_id
        else:
            owner = repo.tracker_id_for_topic(target.topic_id)
            entity, entity_id = "Topic", target.topic_id

        if owner is None:
            raise NotFoundError(entity, entity_id)
        if owner != tracker_id:
            raise InvalidCoverageError(f"{entity} {entity_id} does not belong to this tracker")

    def list_tests(self, tracker_id: str) -> list[Test]:
        with self._repository() as repo:
            return repo.list_tests_by_tracker(tracker_id)

    def get_test_details(self, test_id: str) -> TestDetails | None:
        now = self.clock()
        with self._repository() as repo:
            test = repo.get_test(test_id)
            if test is None:
                return None
            return build_test_details(repo, test, now)

    # =========================================================================
    # EXPORT / IMPORT
    # =========================================================================

    def export_syllabus(self, tracker_id: str) -> SyllabusDocument:
        """Export a tracker's subject/unit/topic names.

        Raises:
            NotFoundError: If the tracker does not exist
        """
        with self._repository() as repo:
            tracker = repo.get_tracker(tracker_id)
            if tracker is None:
                raise NotFoundError("Tracker", tracker_id)

            subjects = [
                SyllabusSubjectDoc(
                    name=subject.name,
                    units=[
                        SyllabusUnitDoc(
                            name=unit.name,
                            topics=[t.name for t in repo.list_topics(unit.id)],
                        )
                        for unit in repo.list_units(subject.id)
                    ],
                )
                for subject in repo.list_subjects(tracker_id)
            ]

        return SyllabusDocument(
            name=tracker.name,
            description=tracker.description,
            color=tracker.color,
            version=FORMAT_VERSION,
            subjects=subjects,
        )

    def import_syllabus(self, semester_id: str, document: SyllabusDocument) -> Tracker:
        """Create a new tracker from an exported document.

        All topics start incomplete.

        Raises:
            NotFoundError: If the semester does not exist
        """
        now = self.clock()
        with self._repository() as repo:
            tracker = self._create_tracker_tree(
                repo,
                semester_id,
                document.name,
                document.description,
                document.color,
                document.to_entries(),
                now,
            )

        logger.info(
            "trackers.imported",
            tracker_id=tracker.id,
            semester_id=semester_id,
            version=document.version,
        )
        return tracker

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    def get_theme(self) -> str:
        with self._repository() as repo:
            theme = repo.get_preference(THEME_KEY)
        return theme or load_app_config().default_theme

    def set_theme(self, theme: str) -> str:
        if theme not in THEMES:
            raise StudyTrackError(f"Invalid theme: '{theme}'. Expected one of: {', '.join(THEMES)}")
        with self._repository() as repo:
            repo.set_preference(THEME_KEY, theme)
        return theme
