"""Tests for test countdowns and priority ranking (F3)."""

import pytest

from studytrack.core.models import Test, TestCoverage, TestType, Topic
from studytrack.core.priority import (
    MS_PER_DAY,
    MS_PER_HOUR,
    MS_PER_MINUTE,
    PASSED_MESSAGE,
    build_priority_tests,
    build_test_details,
    days_remaining,
    format_time_remaining,
    is_within_priority_window,
    resolve_covered_topics,
)

NOW = 1_772_442_000_000


def _test(test_id, scheduled_date, name=None):
    return Test(
        id=test_id,
        tracker_id="trk",
        name=name or test_id,
        test_type=TestType.ISA,
        scheduled_date=scheduled_date,
        created_at=0,
        updated_at=0,
    )


def _topic(topic_id, unit_id, name):
    return Topic(topic_id, unit_id, name, False, 0, 0, 0)


class CoverageStore:
    """Store exposing just topics and coverage rows."""

    def __init__(self, topics=(), coverage=None):
        self.topics = list(topics)
        self.coverage = coverage or {}

    def list_topics(self, unit_id):
        return [t for t in self.topics if t.unit_id == unit_id]

    def get_topic(self, topic_id):
        return next((t for t in self.topics if t.id == topic_id), None)

    def list_coverage(self, test_id):
        return self.coverage.get(test_id, [])


class TestDaysRemaining:
    """Tests for days_remaining (ceiling of whole days)."""

    def test_partial_day_rounds_up(self):
        """3 days 2 hours away counts as 4 days."""
        assert days_remaining(NOW + 3 * MS_PER_DAY + 2 * MS_PER_HOUR, NOW) == 4

    def test_thirty_minutes_is_one_day(self):
        assert days_remaining(NOW + 30 * MS_PER_MINUTE, NOW) == 1

    def test_exact_days(self):
        assert days_remaining(NOW + 7 * MS_PER_DAY, NOW) == 7

    def test_now_is_zero(self):
        assert days_remaining(NOW, NOW) == 0

    def test_past_is_not_positive(self):
        assert days_remaining(NOW - 2 * MS_PER_DAY - MS_PER_HOUR, NOW) == -2


class TestFormatTimeRemaining:
    """Tests for format_time_remaining."""

    def test_days_hours_minutes(self):
        scheduled = NOW + 3 * MS_PER_DAY + 2 * MS_PER_HOUR + 15 * MS_PER_MINUTE

        assert format_time_remaining(scheduled, NOW) == "3d 2h 15m"

    def test_components_are_floored(self):
        """Seconds are dropped and days are not rounded up."""
        scheduled = NOW + 3 * MS_PER_DAY + 2 * MS_PER_HOUR + 59_999

        assert format_time_remaining(scheduled, NOW) == "3d 2h 0m"

    def test_under_a_day(self):
        assert format_time_remaining(NOW + 30 * MS_PER_MINUTE, NOW) == "0d 0h 30m"

    def test_passed(self):
        assert format_time_remaining(NOW, NOW) == PASSED_MESSAGE
        assert format_time_remaining(NOW - 1, NOW) == "Test has passed"


class TestPriorityWindow:
    @pytest.mark.parametrize(
        "offset,expected",
        [
            (-MS_PER_DAY, False),
            (0, False),
            (1, True),
            (7 * MS_PER_DAY, True),
            (7 * MS_PER_DAY + 1, False),
        ],
    )
    def test_window_bounds(self, offset, expected):
        assert is_within_priority_window(NOW + offset, NOW) is expected


class TestResolveCoveredTopics:
    """Tests for resolve_covered_topics."""

    def test_unit_expands_to_all_topics(self):
        store = CoverageStore(
            topics=[_topic("a", "u1", "Limits"), _topic("b", "u1", "Derivatives")]
        )
        coverage = [TestCoverage(id="c1", test_id="t1", unit_id="u1")]

        assert resolve_covered_topics(store, coverage) == ["Limits", "Derivatives"]

    def test_topic_row_and_duplicates_kept(self):
        """A topic covered directly and through its unit appears twice."""
        store = CoverageStore(topics=[_topic("a", "u1", "Limits")])
        coverage = [
            TestCoverage(id="c1", test_id="t1", topic_id="a"),
            TestCoverage(id="c2", test_id="t1", unit_id="u1"),
        ]

        assert resolve_covered_topics(store, coverage) == ["Limits", "Limits"]

    def test_missing_topic_and_empty_row_skipped(self):
        store = CoverageStore()
        coverage = [
            TestCoverage(id="c1", test_id="t1", topic_id="gone"),
            TestCoverage(id="c2", test_id="t1"),
        ]

        assert resolve_covered_topics(store, coverage) == []

    def test_unit_id_wins_when_both_set(self):
        store = CoverageStore(
            topics=[_topic("a", "u1", "Limits"), _topic("z", "u2", "Other")]
        )
        coverage = [TestCoverage(id="c1", test_id="t1", unit_id="u1", topic_id="z")]

        assert resolve_covered_topics(store, coverage) == ["Limits"]


class TestBuildPriorityTests:
    """Tests for build_priority_tests."""

    def test_filters_and_sorts_by_days(self):
        tests = [
            _test("past", NOW - MS_PER_HOUR),
            _test("five", NOW + 4 * MS_PER_DAY + MS_PER_HOUR),
            _test("far", NOW + 10 * MS_PER_DAY),
            _test("one", NOW + 2 * MS_PER_HOUR),
        ]

        priority = build_priority_tests(CoverageStore(), tests, NOW)

        assert [d.test.id for d in priority] == ["one", "five"]
        assert [d.days_remaining for d in priority] == [1, 5]

    def test_ties_keep_input_order(self):
        """Tests on the same rounded day stay in their given order."""
        tests = [
            _test("later", NOW + 2 * MS_PER_DAY + 5 * MS_PER_HOUR),
            _test("earlier", NOW + 2 * MS_PER_DAY + MS_PER_HOUR),
        ]

        priority = build_priority_tests(CoverageStore(), tests, NOW)

        assert [d.test.id for d in priority] == ["later", "earlier"]

    def test_empty(self):
        assert build_priority_tests(CoverageStore(), [], NOW) == []

    def test_details_include_coverage(self):
        store = CoverageStore(
            topics=[_topic("a", "u1", "Limits")],
            coverage={"t1": [TestCoverage(id="c1", test_id="t1", unit_id="u1")]},
        )

        details = build_test_details(store, _test("t1", NOW + MS_PER_DAY), NOW)

        assert details.covered_topics == ["Limits"]
        assert details.days_remaining == 1
        assert details.time_remaining == "1d 0h 0m"
        assert details.to_dict()["test"]["test_type"] == "isa"
