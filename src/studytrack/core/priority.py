"""Countdown and priority ranking for scheduled tests.

All functions take the current time explicitly (``now_ms``) so a request
can read the clock once and reuse it everywhere.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable

from studytrack.core.models import Test, TestCoverage
from studytrack.core.store import SyllabusStore

MS_PER_DAY = 86_400_000
MS_PER_HOUR = 3_600_000
MS_PER_MINUTE = 60_000

PRIORITY_WINDOW_DAYS = 7
PASSED_MESSAGE = "Test has passed"


def days_remaining(scheduled_date: int, now_ms: int) -> int:
    """Whole days until the test, rounded up.

    A test 30 minutes away is 1 day away; a test at ``now`` is 0; past
    tests give zero or a negative number.
    """
    return math.ceil((scheduled_date - now_ms) / MS_PER_DAY)


def format_time_remaining(scheduled_date: int, now_ms: int) -> str:
    """Countdown string like ``"3d 2h 15m"``.

    Days and hours are floored independently of days_remaining().
    """
    diff_ms = scheduled_date - now_ms
    if diff_ms <= 0:
        return PASSED_MESSAGE

    days = diff_ms // MS_PER_DAY
    hours = (diff_ms % MS_PER_DAY) // MS_PER_HOUR
    minutes = (diff_ms % MS_PER_HOUR) // MS_PER_MINUTE
    return f"{days}d {hours}h {minutes}m"


def is_within_priority_window(scheduled_date: int, now_ms: int) -> bool:
    """True when the test is strictly in the future and at most a week out."""
    days = days_remaining(scheduled_date, now_ms)
    return 0 < days <= PRIORITY_WINDOW_DAYS


def resolve_covered_topics(store: SyllabusStore, coverage: Iterable[TestCoverage]) -> list[str]:
    """Flatten coverage rows into topic names.

    A unit row expands to every topic currently in the unit. A topic row
    gives that topic's name, or nothing if it no longer exists. Rows with
    neither id contribute nothing. Duplicates are kept.
    """
    names: list[str] = []
    for row in coverage:
        if row.unit_id:
            names.extend(t.name for t in store.list_topics(row.unit_id))
        elif row.topic_id:
            topic = store.get_topic(row.topic_id)
            if topic is not None:
                names.append(topic.name)
    return names


@dataclass
class TestDetails:
    """A test with its coverage resolved and countdown computed."""

    __test__ = False

    test: Test
    coverage: list[TestCoverage] = field(default_factory=list)
    covered_topics: list[str] = field(default_factory=list)
    days_remaining: int = 0
    time_remaining: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "test": self.test.to_dict(),
            "coverage": [c.to_dict() for c in self.coverage],
            "covered_topics": list(self.covered_topics),
            "days_remaining": self.days_remaining,
            "time_remaining": self.time_remaining,
        }


def build_test_details(store: SyllabusStore, test: Test, now_ms: int) -> TestDetails:
    coverage = store.list_coverage(test.id)
    return TestDetails(
        test=test,
        coverage=coverage,
        covered_topics=resolve_covered_topics(store, coverage),
        days_remaining=days_remaining(test.scheduled_date, now_ms),
        time_remaining=format_time_remaining(test.scheduled_date, now_ms),
    )


def build_priority_tests(
    store: SyllabusStore,
    tests: Iterable[Test],
    now_ms: int,
) -> list[TestDetails]:
    """Select tests due within the priority window, soonest first.

    Args:
        store: Storage used to resolve coverage
        tests: Candidate tests, usually all tests of one tracker
        now_ms: Current time in milliseconds

    Returns:
        Details for tests with 0 < days_remaining <= 7, stably sorted by
        days_remaining
    """
    priority = [
        build_test_details(store, test, now_ms)
        for test in tests
        if is_within_priority_window(test.scheduled_date, now_ms)
    ]
    priority.sort(key=lambda d: d.days_remaining)
    return priority
