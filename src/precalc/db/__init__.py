"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions per record area (registrations, milestones, exams, ...)
- YAML fixture loading
"""

from precalc.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
