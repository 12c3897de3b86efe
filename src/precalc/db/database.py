"""SQLite database connection and schema management.

Provides connection management and schema initialization for the course site.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/precalc.db")

# Current database (module-level, set by init_db)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/precalc.db
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    # Ensure directory exists
    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def get_db_path() -> Path:
    """Path of the database currently in use."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM registrations").fetchall()
    """
    db_path = get_db_path()

    # Ensure directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency. Dates are ISO-8601 TEXT.
    Flag columns use the registrar's single-letter codes ('Y', 'N', ...).
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS terms (
            term_key TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            withdraw_deadline TEXT,
            active INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS students (
            student_id TEXT PRIMARY KEY,
            first_name TEXT NOT NULL DEFAULT '',
            last_name TEXT NOT NULL DEFAULT '',
            email TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- One row per course section per term
        CREATE TABLE IF NOT EXISTS course_sections (
            course_id TEXT NOT NULL,
            section TEXT NOT NULL,
            term_key TEXT NOT NULL,
            exam_structure TEXT NOT NULL DEFAULT 'UNIT_FINAL'
                CHECK(exam_structure IN ('UNIT_FINAL', 'MASTERY')),
            review_required INTEGER NOT NULL DEFAULT 1,
            display_grade_scale INTEGER NOT NULL DEFAULT 1,
            a_min_score INTEGER,
            b_min_score INTEGER,
            c_min_score INTEGER,
            d_min_score INTEGER,
            PRIMARY KEY (course_id, section, term_key)
        );

        CREATE TABLE IF NOT EXISTS course_units (
            course_id TEXT NOT NULL,
            unit INTEGER NOT NULL,
            unit_type TEXT NOT NULL DEFAULT 'INST'
                CHECK(unit_type IN ('INST', 'SR', 'FIN')),
            re_points_ontime INTEGER,
            PRIMARY KEY (course_id, unit)
        );

        -- Student course registrations (pace_order NULL until assigned)
        CREATE TABLE IF NOT EXISTS registrations (
            student_id TEXT NOT NULL,
            course_id TEXT NOT NULL,
            section TEXT NOT NULL,
            term_key TEXT NOT NULL,
            pace_order INTEGER,
            open_status TEXT,
            completed TEXT NOT NULL DEFAULT 'N',
            prereq_satisfied TEXT,
            instruction_type TEXT NOT NULL DEFAULT 'RI',
            synthetic INTEGER NOT NULL DEFAULT 0,
            i_in_progress TEXT NOT NULL DEFAULT 'N',
            i_counted TEXT,
            i_term_key TEXT,
            i_deadline TEXT,
            course_grade TEXT,
            PRIMARY KEY (student_id, course_id, term_key)
        );

        CREATE TABLE IF NOT EXISTS milestones (
            term_key TEXT NOT NULL,
            pace INTEGER NOT NULL,
            track TEXT NOT NULL,
            ms_nbr INTEGER NOT NULL,
            ms_type TEXT NOT NULL,
            ms_date TEXT NOT NULL,
            attempts_allowed INTEGER,
            PRIMARY KEY (term_key, track, ms_nbr, ms_type)
        );

        -- Per-student milestone overrides (extensions, accommodations)
        CREATE TABLE IF NOT EXISTS student_milestones (
            student_id TEXT NOT NULL,
            term_key TEXT NOT NULL,
            track TEXT NOT NULL,
            ms_nbr INTEGER NOT NULL,
            ms_type TEXT NOT NULL,
            ms_date TEXT NOT NULL,
            attempts_allowed INTEGER,
            PRIMARY KEY (student_id, term_key, track, ms_nbr, ms_type)
        );

        CREATE TABLE IF NOT EXISTS student_exams (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            student_id TEXT NOT NULL,
            course_id TEXT NOT NULL,
            unit INTEGER NOT NULL,
            exam_id TEXT NOT NULL,
            exam_type TEXT NOT NULL CHECK(exam_type IN ('R', 'U', 'F')),
            exam_date TEXT NOT NULL,
            score INTEGER NOT NULL,
            passed TEXT NOT NULL DEFAULT 'N',
            first_passed TEXT NOT NULL DEFAULT 'N'
        );

        CREATE TABLE IF NOT EXISTS homework_attempts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            student_id TEXT NOT NULL,
            course_id TEXT NOT NULL,
            unit INTEGER NOT NULL,
            assignment_id TEXT NOT NULL,
            attempt_date TEXT NOT NULL,
            score INTEGER NOT NULL,
            passed TEXT NOT NULL DEFAULT 'N'
        );

        CREATE TABLE IF NOT EXISTS etexts (
            etext_id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            course_id TEXT
        );

        CREATE TABLE IF NOT EXISTS student_etexts (
            student_id TEXT NOT NULL,
            etext_id TEXT NOT NULL REFERENCES etexts(etext_id),
            active_date TEXT,
            expiration_date TEXT,
            refund_deadline TEXT,
            refund_date TEXT,
            refund_reason TEXT,
            PRIMARY KEY (student_id, etext_id)
        );

        CREATE TABLE IF NOT EXISTS placement_attempts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            student_id TEXT NOT NULL,
            version TEXT NOT NULL,
            serial_nbr INTEGER NOT NULL,
            start_time TEXT,
            finish_time TEXT,
            placed TEXT NOT NULL DEFAULT 'N',
            subtests TEXT NOT NULL DEFAULT '{}'
        );

        -- exam_placed: 'P' placed out, 'C' credit; denied rows have denied = 1
        CREATE TABLE IF NOT EXISTS placement_credit (
            student_id TEXT NOT NULL,
            course_id TEXT NOT NULL,
            exam_placed TEXT NOT NULL CHECK(exam_placed IN ('P', 'C')),
            serial_nbr INTEGER NOT NULL,
            denied INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS media_feedback (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            student_id TEXT NOT NULL,
            media_id TEXT NOT NULL,
            comment TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE INDEX IF NOT EXISTS idx_registrations_student ON registrations(student_id);
        CREATE INDEX IF NOT EXISTS idx_student_exams_student ON student_exams(student_id, course_id);
        CREATE INDEX IF NOT EXISTS idx_homework_student ON homework_attempts(student_id, course_id);
        """
    )
