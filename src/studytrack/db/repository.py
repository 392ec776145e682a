"""Repository for the semester/tracker/syllabus/test tables.

TrackerRepository wraps one open connection (see Database.session) and
provides CRUD for every entity. It also implements the read methods of
studytrack.core.store.SyllabusStore.

Rows created in the same millisecond keep insertion order through a
rowid tiebreak.
"""

from __future__ import annotations

import sqlite3

import structlog

from studytrack.core.models import (
    Semester,
    Subject,
    Test,
    TestCoverage,
    TestType,
    Topic,
    Tracker,
    Unit,
)

logger = structlog.get_logger(__name__)

TRACKER_COLUMNS = (
    "id, semester_id, name, description, color, "
    "total_subjects, total_units, total_topics, created_at, updated_at"
)
UNIT_COLUMNS = 'id, subject_id, name, "order", created_at, updated_at'
TOPIC_COLUMNS = 'id, unit_id, name, completed, "order", created_at, updated_at'
TEST_COLUMNS = "id, tracker_id, name, test_type, scheduled_date, created_at, updated_at"


class TrackerRepository:
    """Data access for one connection."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # =========================================================================
    # SEMESTERS
    # =========================================================================

    def create_semester(self, semester_id: str, name: str, now: int) -> Semester:
        self.conn.execute(
            "INSERT INTO semesters (id, name, created_at, updated_at) VALUES (?, ?, ?, ?)",
            (semester_id, name, now, now),
        )
        logger.debug("semesters.inserted", semester_id=semester_id)
        return Semester(id=semester_id, name=name, created_at=now, updated_at=now)

    def get_semester(self, semester_id: str) -> Semester | None:
        row = self.conn.execute(
            "SELECT id, name, created_at, updated_at FROM semesters WHERE id = ?",
            (semester_id,),
        ).fetchone()
        return _row_to_semester(row) if row is not None else None

    def list_semesters(self) -> list[Semester]:
        """All semesters, newest first."""
        rows = self.conn.execute(
            "SELECT id, name, created_at, updated_at FROM semesters "
            "ORDER BY created_at DESC, rowid DESC"
        ).fetchall()
        return [_row_to_semester(row) for row in rows]

    def delete_semester(self, semester_id: str) -> bool:
        cursor = self.conn.execute("DELETE FROM semesters WHERE id = ?", (semester_id,))
        return _report_delete("semesters", semester_id, cursor)

    # =========================================================================
    # TRACKERS
    # =========================================================================

    def create_tracker(
        self,
        tracker_id: str,
        semester_id: str,
        name: str,
        description: str | None,
        color: str | None,
        now: int,
    ) -> Tracker:
        self.conn.execute(
            f"""
            INSERT INTO trackers ({TRACKER_COLUMNS})
            VALUES (?, ?, ?, ?, ?, 0, 0, 0, ?, ?)
            """,
            (tracker_id, semester_id, name, description, color, now, now),
        )
        logger.debug("trackers.inserted", tracker_id=tracker_id, semester_id=semester_id)
        return Tracker(
            id=tracker_id,
            semester_id=semester_id,
            name=name,
            description=description,
            color=color,
            total_subjects=0,
            total_units=0,
            total_topics=0,
            created_at=now,
            updated_at=now,
        )

    def get_tracker(self, tracker_id: str) -> Tracker | None:
        row = self.conn.execute(
            f"SELECT {TRACKER_COLUMNS} FROM trackers WHERE id = ?", (tracker_id,)
        ).fetchone()
        return _row_to_tracker(row) if row is not None else None

    def list_trackers(self, semester_id: str) -> list[Tracker]:
        """Trackers of a semester, newest first."""
        rows = self.conn.execute(
            f"SELECT {TRACKER_COLUMNS} FROM trackers WHERE semester_id = ? "
            "ORDER BY created_at DESC, rowid DESC",
            (semester_id,),
        ).fetchall()
        return [_row_to_tracker(row) for row in rows]

    def delete_tracker(self, tracker_id: str) -> bool:
        cursor = self.conn.execute("DELETE FROM trackers WHERE id = ?", (tracker_id,))
        return _report_delete("trackers", tracker_id, cursor)

    def refresh_tracker_statistics(self, tracker_id: str, now: int) -> None:
        """Recount subjects, units and topics and store them on the tracker."""
        subject_count = self.conn.execute(
            "SELECT COUNT(*) FROM subjects WHERE tracker_id = ?", (tracker_id,)
        ).fetchone()[0]
        unit_count = self.conn.execute(
            """
            SELECT COUNT(*) FROM units u
            JOIN subjects s ON u.subject_id = s.id
            WHERE s.tracker_id = ?
            """,
            (tracker_id,),
        ).fetchone()[0]
        topic_count = self.conn.execute(
            """
            SELECT COUNT(*) FROM topics t
            JOIN units u ON t.unit_id = u.id
            JOIN subjects s ON u.subject_id = s.id
            WHERE s.tracker_id = ?
            """,
            (tracker_id,),
        ).fetchone()[0]

        self.conn.execute(
            """
            UPDATE trackers
            SET total_subjects = ?, total_units = ?, total_topics = ?, updated_at = ?
            WHERE id = ?
            """,
            (subject_count, unit_count, topic_count, now, tracker_id),
        )
        logger.debug(
            "trackers.statistics_refreshed",
            tracker_id=tracker_id,
            subjects=subject_count,
            units=unit_count,
            topics=topic_count,
        )

    # =========================================================================
    # SUBJECTS
    # =========================================================================

    def create_subject(self, subject_id: str, tracker_id: str, name: str, now: int) -> Subject:
        self.conn.execute(
            "INSERT INTO subjects (id, tracker_id, name, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (subject_id, tracker_id, name, now, now),
        )
        return Subject(
            id=subject_id, tracker_id=tracker_id, name=name, created_at=now, updated_at=now
        )

    def get_subject(self, subject_id: str) -> Subject | None:
        row = self.conn.execute(
            "SELECT id, tracker_id, name, created_at, updated_at FROM subjects WHERE id = ?",
            (subject_id,),
        ).fetchone()
        return _row_to_subject(row) if row is not None else None

    def list_subjects(self, tracker_id: str) -> list[Subject]:
        rows = self.conn.execute(
            "SELECT id, tracker_id, name, created_at, updated_at FROM subjects "
            "WHERE tracker_id = ? ORDER BY created_at ASC, rowid ASC",
            (tracker_id,),
        ).fetchall()
        return [_row_to_subject(row) for row in rows]

    def update_subject(self, subject_id: str, name: str, now: int) -> bool:
        cursor = self.conn.execute(
            "UPDATE subjects SET name = ?, updated_at = ? WHERE id = ?",
            (name, now, subject_id),
        )
        return cursor.rowcount > 0

    def delete_subject(self, subject_id: str) -> bool:
        cursor = self.conn.execute("DELETE FROM subjects WHERE id = ?", (subject_id,))
        return _report_delete("subjects", subject_id, cursor)

    # =========================================================================
    # UNITS
    # =========================================================================

    def create_unit(self, unit_id: str, subject_id: str, name: str, order: int, now: int) -> Unit:
        self.conn.execute(
            f"INSERT INTO units ({UNIT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (unit_id, subject_id, name, order, now, now),
        )
        return Unit(
            id=unit_id,
            subject_id=subject_id,
            name=name,
            order=order,
            created_at=now,
            updated_at=now,
        )

    def get_unit(self, unit_id: str) -> Unit | None:
        row = self.conn.execute(
            f"SELECT {UNIT_COLUMNS} FROM units WHERE id = ?", (unit_id,)
        ).fetchone()
        return _row_to_unit(row) if row is not None else None

    def list_units(self, subject_id: str) -> list[Unit]:
        rows = self.conn.execute(
            f'SELECT {UNIT_COLUMNS} FROM units WHERE subject_id = ? ORDER BY "order" ASC, rowid ASC',
            (subject_id,),
        ).fetchall()
        return [_row_to_unit(row) for row in rows]

    def next_unit_order(self, subject_id: str) -> int:
        row = self.conn.execute(
            'SELECT MAX("order") FROM units WHERE subject_id = ?', (subject_id,)
        ).fetchone()
        return 0 if row[0] is None else row[0] + 1

    def update_unit(self, unit_id: str, name: str, now: int) -> bool:
        cursor = self.conn.execute(
            "UPDATE units SET name = ?, updated_at = ? WHERE id = ?",
            (name, now, unit_id),
        )
        return cursor.rowcount > 0

    def delete_unit(self, unit_id: str) -> bool:
        cursor = self.conn.execute("DELETE FROM units WHERE id = ?", (unit_id,))
        return _report_delete("units", unit_id, cursor)

    # =========================================================================
    # TOPICS
    # =========================================================================

    def create_topic(self, topic_id: str, unit_id: str, name: str, order: int, now: int) -> Topic:
        self.conn.execute(
            f"INSERT INTO topics ({TOPIC_COLUMNS}) VALUES (?, ?, ?, 0, ?, ?, ?)",
            (topic_id, unit_id, name, order, now, now),
        )
        return Topic(
            id=topic_id,
            unit_id=unit_id,
            name=name,
            completed=False,
            order=order,
            created_at=now,
            updated_at=now,
        )

    def get_topic(self, topic_id: str) -> Topic | None:
        row = self.conn.execute(
            f"SELECT {TOPIC_COLUMNS} FROM topics WHERE id = ?", (topic_id,)
        ).fetchone()
        return _row_to_topic(row) if row is not None else None

    def list_topics(self, unit_id: str) -> list[Topic]:
        rows = self.conn.execute(
            f'SELECT {TOPIC_COLUMNS} FROM topics WHERE unit_id = ? ORDER BY "order" ASC, rowid ASC',
            (unit_id,),
        ).fetchall()
        return [_row_to_topic(row) for row in rows]

    def next_topic_order(self, unit_id: str) -> int:
        row = self.conn.execute(
            'SELECT MAX("order") FROM topics WHERE unit_id = ?', (unit_id,)
        ).fetchone()
        return 0 if row[0] is None else row[0] + 1

    def set_topic_completed(self, topic_id: str, completed: bool, now: int) -> None:
        self.conn.execute(
            "UPDATE topics SET completed = ?, updated_at = ? WHERE id = ?",
            (1 if completed else 0, now, topic_id),
        )

    def update_topic(self, topic_id: str, name: str, now: int) -> bool:
        cursor = self.conn.execute(
            "UPDATE topics SET name = ?, updated_at = ? WHERE id = ?",
            (name, now, topic_id),
        )
        return cursor.rowcount > 0

    def delete_topic(self, topic_id: str) -> bool:
        cursor = self.conn.execute("DELETE FROM topics WHERE id = ?", (topic_id,))
        return _report_delete("topics", topic_id, cursor)

    def tracker_id_for_unit(self, unit_id: str) -> str | None:
        row = self.conn.execute(
            """
            SELECT s.tracker_id FROM units u
            JOIN subjects s ON u.subject_id = s.id
            WHERE u.id = ?
            """,
            (unit_id,),
        ).fetchone()
        return row[0] if row is not None else None

    def tracker_id_for_topic(self, topic_id: str) -> str | None:
        row = self.conn.execute(
            """
            SELECT s.tracker_id FROM topics t
            JOIN units u ON t.unit_id = u.id
            JOIN subjects s ON u.subject_id = s.id
            WHERE t.id = ?
            """,
            (topic_id,),
        ).fetchone()
        return row[0] if row is not None else None

    # =========================================================================
    # TESTS
    # =========================================================================

    def create_test(
        self,
        test_id: str,
        tracker_id: str,
        name: str,
        test_type: TestType,
        scheduled_date: int,
        now: int,
    ) -> Test:
        self.conn.execute(
            f"INSERT INTO tests ({TEST_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (test_id, tracker_id, name, test_type.as_str(), scheduled_date, now, now),
        )
        logger.debug("tests.inserted", test_id=test_id, tracker_id=tracker_id)
        return Test(
            id=test_id,
            tracker_id=tracker_id,
            name=name,
            test_type=test_type,
            scheduled_date=scheduled_date,
            created_at=now,
            updated_at=now,
        )

    def get_test(self, test_id: str) -> Test | None:
        row = self.conn.execute(
            f"SELECT {TEST_COLUMNS} FROM tests WHERE id = ?", (test_id,)
        ).fetchone()
        return _row_to_test(row) if row is not None else None

    def list_tests_by_tracker(self, tracker_id: str) -> list[Test]:
        rows = self.conn.execute(
            f"SELECT {TEST_COLUMNS} FROM tests WHERE tracker_id = ? "
            "ORDER BY scheduled_date ASC, rowid ASC",
            (tracker_id,),
        ).fetchall()
        return [_row_to_test(row) for row in rows]

    def create_coverage(
        self,
        coverage_id: str,
        test_id: str,
        unit_id: str | None,
        topic_id: str | None,
    ) -> TestCoverage:
        self.conn.execute(
            "INSERT INTO test_coverage (id, test_id, unit_id, topic_id) VALUES (?, ?, ?, ?)",
            (coverage_id, test_id, unit_id, topic_id),
        )
        return TestCoverage(id=coverage_id, test_id=test_id, unit_id=unit_id, topic_id=topic_id)

    def list_coverage(self, test_id: str) -> list[TestCoverage]:
        rows = self.conn.execute(
            "SELECT id, test_id, unit_id, topic_id FROM test_coverage "
            "WHERE test_id = ? ORDER BY rowid ASC",
            (test_id,),
        ).fetchall()
        return [
            TestCoverage(
                id=row["id"],
                test_id=row["test_id"],
                unit_id=row["unit_id"],
                topic_id=row["topic_id"],
            )
            for row in rows
        ]

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    def get_preference(self, key: str) -> str | None:
        row = self.conn.execute(
            "SELECT value FROM preferences WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row is not None else None

    def set_preference(self, key: str, value: str) -> None:
        self.conn.execute(
            "INSERT OR REPLACE INTO preferences (key, value) VALUES (?, ?)",
            (key, value),
        )


def _report_delete(table: str, entity_id: str, cursor: sqlite3.Cursor) -> bool:
    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug(f"{table}.deleted", id=entity_id)
    return deleted


def _row_to_semester(row) -> Semester:
    return Semester(
        id=row["id"],
        name=row["name"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_tracker(row) -> Tracker:
    return Tracker(
        id=row["id"],
        semester_id=row["semester_id"],
        name=row["name"],
        description=row["description"],
        color=row["color"],
        total_subjects=row["total_subjects"] or 0,
        total_units=row["total_units"] or 0,
        total_topics=row["total_topics"] or 0,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_subject(row) -> Subject:
    return Subject(
        id=row["id"],
        tracker_id=row["tracker_id"],
        name=row["name"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_unit(row) -> Unit:
    return Unit(
        id=row["id"],
        subject_id=row["subject_id"],
        name=row["name"],
        order=row["order"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_topic(row) -> Topic:
    return Topic(
        id=row["id"],
        unit_id=row["unit_id"],
        name=row["name"],
        completed=bool(row["completed"]),
        order=row["order"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_test(row) -> Test:
    return Test(
        id=row["id"],
        tracker_id=row["tracker_id"],
        name=row["name"],
        test_type=TestType.decode(row["test_type"]),
        scheduled_date=row["scheduled_date"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
