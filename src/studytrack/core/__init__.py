"""Core business logic.

Modules:
- syllabus_parser: Syllabus text to subject/unit/topic entries
- progress: Completion roll-up per unit, subject and tracker
- priority: Test countdowns, coverage resolution and priority list
- syllabus_document: Export/import document format
- tracker_service: Request-level operations over the database
"""

__all__ = [
    "syllabus_parser",
    "progress",
    "priority",
    "syllabus_document",
    "tracker_service",
]
