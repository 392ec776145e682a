"""Tests for TrackerService (F4)."""

import pytest

from studytrack.core.errors import (
    InvalidCoverageError,
    InvalidTestTypeError,
    NotFoundError,
    StudyTrackError,
    SyllabusFormatError,
)
from studytrack.core.models import CoverageTarget, TestType
from studytrack.core.priority import MS_PER_DAY, MS_PER_HOUR
from studytrack.core.syllabus_document import SyllabusDocument
from studytrack.core.tracker_service import TrackerService


def _first_unit_and_topic(service, tracker_id):
    data = service.get_tracker_data(tracker_id)
    unit_data = data.subjects[0].units[0]
    return unit_data.unit, unit_data.topics[0]


class TestSemesters:
    def test_create_and_list(self, service, clock):
        service.create_semester("Fall 2025")
        clock.advance(1)
        service.create_semester("Spring 2026")

        assert [s.name for s in service.list_semesters()] == ["Spring 2026", "Fall 2025"]

    def test_delete_removes_trackers(self, service, semester, tracker):
        assert service.delete_semester(semester.id) is True

        assert service.get_tracker(tracker.id) is None
        assert service.delete_semester(semester.id) is False


class TestCreateTracker:
    """Tests for create_tracker."""

    def test_builds_tree_and_totals(self, service, tracker):
        assert (tracker.total_subjects, tracker.total_units, tracker.total_topics) == (2, 3, 7)

        data = service.get_tracker_data(tracker.id)
        math = data.subjects[0]
        assert math.subject.name == "Mathematics"
        assert [u.unit.name for u in math.units] == ["Calculus", "Algebra"]
        assert [u.unit.order for u in math.units] == [0, 1]
        assert [t.name for t in math.units[0].topics] == ["Limits", "Derivatives", "Integrals"]
        assert [t.order for t in math.units[0].topics] == [0, 1, 2]
        assert not any(t.completed for t in math.units[0].topics)

    def test_optional_fields(self, service, semester):
        tracker = service.create_tracker(
            semester.id, "Electives", "Art >>> Drawing", description="Fun", color="#ff0000"
        )

        assert tracker.description == "Fun"
        assert tracker.color == "#ff0000"

    def test_malformed_text_writes_nothing(self, service, semester):
        with pytest.raises(SyllabusFormatError):
            service.create_tracker(semester.id, "Broken", "Math >>> A\nno delimiter")

        assert service.list_trackers(semester.id) == []

    def test_missing_semester(self, service, sample_syllabus):
        with pytest.raises(NotFoundError) as exc_info:
            service.create_tracker("missing", "Core", sample_syllabus)

        assert exc_info.value.message == "Semester not found: missing"

    def test_listing_and_delete(self, service, semester, tracker):
        assert [t.id for t in service.list_trackers(semester.id)] == [tracker.id]

        assert service.delete_tracker(tracker.id) is True
        assert service.get_tracker_data(tracker.id) is None
        assert service.delete_tracker(tracker.id) is False


class TestTopics:
    """Tests for topic toggling and syllabus edits."""

    def test_toggle_twice_restores_state(self, service, tracker, clock):
        """Each toggle flips the flag and stamps updated_at with the clock."""
        _, topic = _first_unit_and_topic(service, tracker.id)

        clock.advance(1_000)
        first = service.toggle_topic(topic.id)
        assert first.completed is True
        assert first.updated_at == clock.now
        stored = service.get_tracker_data(tracker.id).subjects[0].units[0].topics[0]
        assert stored.updated_at == clock.now
        assert service.get_tracker_data(tracker.id).progress.completed_topics == 1

        clock.advance(5_000)
        second = service.toggle_topic(topic.id)
        assert second.completed is False
        assert second.updated_at == clock.now
        stored = service.get_tracker_data(tracker.id).subjects[0].units[0].topics[0]
        assert stored.updated_at == clock.now
        assert stored.completed is False
        assert service.get_tracker_data(tracker.id).progress.completed_topics == 0

    def test_toggle_missing_topic(self, service):
        assert service.toggle_topic("missing") is None

    def test_progress_after_toggle(self, service, tracker):
        _, topic = _first_unit_and_topic(service, tracker.id)
        service.toggle_topic(topic.id)

        progress = service.get_tracker_data(tracker.id).progress

        assert progress.percentage == pytest.approx(100 / 7)
        assert progress.subjects[0].units[0].completed_topics == 1

    def test_create_topic_appends(self, service, tracker):
        unit, _ = _first_unit_and_topic(service, tracker.id)

        topic = service.create_topic(unit.id, "Series")

        assert topic.order == 3
        assert topic.completed is False
        assert service.get_tracker(tracker.id).total_topics == 8

    def test_create_topic_missing_unit(self, service):
        with pytest.raises(NotFoundError):
            service.create_topic("missing", "Series")

    def test_create_unit_appends(self, service, tracker):
        subject = service.get_tracker_data(tracker.id).subjects[0].subject

        unit = service.create_unit(subject.id, "Geometry")

        assert unit.order == 2
        assert service.get_tracker(tracker.id).total_units == 4

    def test_rename(self, service, tracker):
        unit, topic = _first_unit_and_topic(service, tracker.id)

        assert service.update_unit(unit.id, "Calculus I").name == "Calculus I"
        assert service.update_topic(topic.id, "Limits & continuity").name == "Limits & continuity"
        assert service.update_subject("missing", "x") is None

    def test_delete_topic_recounts(self, service, tracker):
        _, topic = _first_unit_and_topic(service, tracker.id)

        assert service.delete_topic(topic.id) is True

        assert service.get_tracker(tracker.id).total_topics == 6
        assert service.delete_topic(topic.id) is False

    def test_delete_subject_cascades(self, service, tracker, clock):
        """Removing a subject drops its units, topics and coverage."""
        unit, topic = _first_unit_and_topic(service, tracker.id)
        test = service.schedule_test(
            tracker.id,
            "ISA 1",
            "isa",
            clock.now + MS_PER_DAY,
            [CoverageTarget(unit_id=unit.id), CoverageTarget(topic_id=topic.id)],
        )
        subject = service.get_tracker_data(tracker.id).subjects[0].subject

        assert service.delete_subject(subject.id) is True

        refreshed = service.get_tracker(tracker.id)
        assert (refreshed.total_subjects, refreshed.total_units, refreshed.total_topics) == (
            1,
            1,
            2,
        )
        details = service.get_test_details(test.id)
        assert details.coverage == []
        assert details.covered_topics == []
        assert service.delete_subject(subject.id) is False

    def test_create_subject(self, service, tracker):
        subject = service.create_subject(tracker.id, "Chemistry")

        assert subject.name == "Chemistry"
        assert service.get_tracker(tracker.id).total_subjects == 3
        with pytest.raises(NotFoundError):
            service.create_subject("missing", "Chemistry")


class TestScheduleTest:
    """Tests for schedule_test and test details."""

    def test_schedule_with_unit_coverage(self, service, tracker, clock):
        unit, _ = _first_unit_and_topic(service, tracker.id)

        test = service.schedule_test(
            tracker.id,
            "Calculus ISA",
            "isa",
            clock.now + 3 * MS_PER_DAY + 2 * MS_PER_HOUR,
            [CoverageTarget(unit_id=unit.id)],
        )

        assert test.test_type is TestType.ISA
        details = service.get_test_details(test.id)
        assert details.covered_topics == ["Limits", "Derivatives", "Integrals"]
        assert details.days_remaining == 4
        assert details.time_remaining == "3d 2h 0m"

    def test_accepts_enum(self, service, tracker, clock):
        test = service.schedule_test(tracker.id, "Lab", TestType.LAB_PRACTICAL, clock.now)

        assert service.list_tests(tracker.id)[0].test_type is TestType.LAB_PRACTICAL
        assert service.get_test_details(test.id).time_remaining == "Test has passed"

    def test_invalid_type_writes_nothing(self, service, tracker, clock):
        with pytest.raises(InvalidTestTypeError):
            service.schedule_test(tracker.id, "Quiz", "quiz", clock.now + MS_PER_DAY)

        assert service.list_tests(tracker.id) == []

    def test_missing_tracker(self, service, clock):
        with pytest.raises(NotFoundError):
            service.schedule_test("missing", "ISA", "isa", clock.now)

    def test_malformed_coverage(self, service, tracker, clock):
        with pytest.raises(InvalidCoverageError):
            service.schedule_test(
                tracker.id, "ISA", "isa", clock.now, [CoverageTarget()]
            )

    def test_missing_coverage_target_writes_nothing(self, service, tracker, clock):
        with pytest.raises(NotFoundError):
            service.schedule_test(
                tracker.id, "ISA", "isa", clock.now, [CoverageTarget(topic_id="missing")]
            )

        assert service.list_tests(tracker.id) == []

    def test_coverage_from_other_tracker_rejected(self, service, semester, tracker, clock):
        other = service.create_tracker(semester.id, "Other", "Art >>> Drawing >>> Lines")
        other_unit, _ = _first_unit_and_topic(service, other.id)

        with pytest.raises(InvalidCoverageError):
            service.schedule_test(
                tracker.id, "ISA", "isa", clock.now, [CoverageTarget(unit_id=other_unit.id)]
            )

    def test_priority_tests_in_tracker_data(self, service, tracker, clock):
        service.schedule_test(tracker.id, "Far", "esa", clock.now + 20 * MS_PER_DAY)
        service.schedule_test(tracker.id, "Soon", "class_test", clock.now + 2 * MS_PER_HOUR)
        service.schedule_test(tracker.id, "Past", "isa", clock.now - MS_PER_HOUR)

        data = service.get_tracker_data(tracker.id)

        assert [t.name for t in data.all_tests] == ["Past", "Soon", "Far"]
        assert [d.test.name for d in data.priority_tests] == ["Soon"]

    def test_details_follow_the_clock(self, service, tracker, clock):
        test = service.schedule_test(tracker.id, "ISA", "isa", clock.now + 2 * MS_PER_DAY)

        clock.advance(3 * MS_PER_DAY)

        details = service.get_test_details(test.id)
        assert details.days_remaining == -1
        assert details.time_remaining == "Test has passed"

    def test_missing_test_details(self, service):
        assert service.get_test_details("missing") is None


class TestExportImport:
    """Tests for export_syllabus and import_syllabus."""

    def test_export_shape(self, service, tracker):
        document = service.export_syllabus(tracker.id)

        assert document.name == "Core courses"
        assert document.version == "1.0"
        assert [s.name for s in document.subjects] == ["Mathematics", "Physics"]
        assert document.subjects[0].units[1].topics == ["Matrices", "Vectors"]

    def test_export_missing_tracker(self, service):
        with pytest.raises(NotFoundError):
            service.export_syllabus("missing")

    def test_round_trip_resets_completion(self, service, semester, tracker):
        _, topic = _first_unit_and_topic(service, tracker.id)
        service.toggle_topic(topic.id)
        document = service.export_syllabus(tracker.id)

        imported = service.import_syllabus(semester.id, document)

        assert imported.id != tracker.id
        assert (imported.total_subjects, imported.total_units, imported.total_topics) == (2, 3, 7)
        assert service.export_syllabus(imported.id).subjects == document.subjects
        assert service.get_tracker_data(imported.id).progress.completed_topics == 0

    def test_import_missing_semester_writes_nothing(self, service, semester):
        document = SyllabusDocument(name="X", subjects=[])

        with pytest.raises(NotFoundError):
            service.import_syllabus("missing", document)

        assert service.list_trackers(semester.id) == []


class TestTheme:
    def test_default_theme(self, service):
        assert service.get_theme() == "light"

    def test_set_theme(self, service):
        assert service.set_theme("dark") == "dark"
        assert service.get_theme() == "dark"

    def test_invalid_theme(self, service):
        with pytest.raises(StudyTrackError) as exc_info:
            service.set_theme("purple")

        assert exc_info.value.message.startswith("Invalid theme")
        assert service.get_theme() == "light"


class TestFromConfig:
    def test_opens_database_from_env(self, tmp_path, monkeypatch):
        db_path = tmp_path / "env" / "tracker.db"
        monkeypatch.setenv("STUDYTRACK_DB", str(db_path))

        service = TrackerService.from_config()

        assert service.database.db_path == db_path
        assert db_path.exists()
