"""Database module for SQLite persistence.

Provides:
- Database handle with serialized sessions and schema initialization
- TrackerRepository with CRUD for every entity
"""

from studytrack.db.database import Database, init_db
from studytrack.db.repository import TrackerRepository

__all__ = ["Database", "TrackerRepository", "init_db"]
