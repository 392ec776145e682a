"""SQLite database connection and schema management.

A Database owns the file path and a single lock. Every logical operation
runs inside one ``session()``: the lock is held, a connection is opened,
and the work is committed or rolled back as a unit.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

from studytrack.core.errors import StorageError

logger = structlog.get_logger(__name__)

# Columns added to trackers after the first release
TRACKER_MIGRATION_COLUMNS = {
    "description": "TEXT",
    "color": "TEXT",
    "total_subjects": "INTEGER DEFAULT 0",
    "total_units": "INTEGER DEFAULT 0",
    "total_topics": "INTEGER DEFAULT 0",
}


class Database:
    """Handle to one SQLite database file with serialized access."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._lock = threading.Lock()

    def initialize(self) -> None:
        """Create the database file and all tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self.session() as conn:
            _migrate_trackers_table(conn)
            _create_schema(conn)

        logger.info("database.initialized", path=str(self.db_path))

    @contextmanager
    def session(self) -> Generator[sqlite3.Connection, None, None]:
        """Exclusive connection for one logical operation.

        Not reentrant: do not open a session while holding one.

        Yields:
            SQLite connection with row factory set to sqlite3.Row

        Raises:
            StorageError: If SQLite fails; the transaction is rolled back
        """
        with self._lock:
            try:
                conn = sqlite3.connect(self.db_path)
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

            conn.row_factory = sqlite3.Row
            try:
                conn.execute("PRAGMA foreign_keys = ON")
                yield conn
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logger.error("database.operation_failed", error=str(e))
                raise StorageError(str(e)) from e
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()


def init_db(db_path: Path | str) -> Database:
    """Open and initialize the database at db_path.

    Args:
        db_path: Path to database file

    Returns:
        Initialized Database handle
    """
    database = Database(db_path)
    database.initialize()
    return database


def _table_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return [row["name"] for row in rows]


def _migrate_trackers_table(conn: sqlite3.Connection) -> None:
    """Create trackers, or add the columns older databases lack."""
    columns = _table_columns(conn, "trackers")

    if not columns:
        conn.execute(
            """
            CREATE TABLE trackers (
                id TEXT PRIMARY KEY,
                semester_id TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                color TEXT,
                total_subjects INTEGER DEFAULT 0,
                total_units INTEGER DEFAULT 0,
                total_topics INTEGER DEFAULT 0,
                created_at INTEGER NOT NULL,
                updated_at INTEGER NOT NULL,
                FOREIGN KEY (semester_id) REFERENCES semesters(id) ON DELETE CASCADE
            )
            """
        )
        return

    for name, definition in TRACKER_MIGRATION_COLUMNS.items():
        if name not in columns:
            conn.execute(f"ALTER TABLE trackers ADD COLUMN {name} {definition}")
            logger.info("database.column_added", table="trackers", column=name)


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create the remaining tables.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS semesters (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS subjects (
            id TEXT PRIMARY KEY,
            tracker_id TEXT NOT NULL,
            name TEXT NOT NULL,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL,
            FOREIGN KEY (tracker_id) REFERENCES trackers(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS units (
            id TEXT PRIMARY KEY,
            subject_id TEXT NOT NULL,
            name TEXT NOT NULL,
            "order" INTEGER NOT NULL,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL,
            FOREIGN KEY (subject_id) REFERENCES subjects(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS topics (
            id TEXT PRIMARY KEY,
            unit_id TEXT NOT NULL,
            name TEXT NOT NULL,
            completed INTEGER NOT NULL DEFAULT 0,
            "order" INTEGER NOT NULL,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL,
            FOREIGN KEY (unit_id) REFERENCES units(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS tests (
            id TEXT PRIMARY KEY,
            tracker_id TEXT NOT NULL,
            name TEXT NOT NULL,
            test_type TEXT NOT NULL,
            scheduled_date INTEGER NOT NULL,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL,
            FOREIGN KEY (tracker_id) REFERENCES trackers(id) ON DELETE CASCADE
        );

        -- Each row covers a whole unit or a single topic
        CREATE TABLE IF NOT EXISTS test_coverage (
            id TEXT PRIMARY KEY,
            test_id TEXT NOT NULL,
            unit_id TEXT,
            topic_id TEXT,
            FOREIGN KEY (test_id) REFERENCES tests(id) ON DELETE CASCADE,
            FOREIGN KEY (unit_id) REFERENCES units(id) ON DELETE CASCADE,
            FOREIGN KEY (topic_id) REFERENCES topics(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS preferences (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_trackers_semester ON trackers(semester_id);
        CREATE INDEX IF NOT EXISTS idx_subjects_tracker ON subjects(tracker_id);
        CREATE INDEX IF NOT EXISTS idx_units_subject ON units(subject_id);
        CREATE INDEX IF NOT EXISTS idx_topics_unit ON topics(unit_id);
        CREATE INDEX IF NOT EXISTS idx_tests_tracker ON tests(tracker_id);
        CREATE INDEX IF NOT EXISTS idx_test_coverage_test ON test_coverage(test_id);
        """
    )
