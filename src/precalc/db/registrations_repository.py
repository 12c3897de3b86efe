"""Repository functions for the registrations table.

A registration ties a student to a course section in a term. Pace order is
NULL until the scheduling logic (or the student, through the ordering form)
assigns one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import structlog

from precalc.db.database import get_db
from precalc.utils.dates import parse_date, to_iso

logger = structlog.get_logger(__name__)


@dataclass
class Registration:
    """Registration record from database."""

    student_id: str
    course_id: str
    section: str
    term_key: str
    pace_order: int | None = None
    open_status: str | None = None  # Y open | N finished | D dropped | G forfeit
    completed: str = "N"
    prereq_satisfied: str | None = None  # Y | P (provisional) | N
    instruction_type: str = "RI"  # OT = credit by exam
    synthetic: bool = False
    i_in_progress: str = "N"
    i_counted: str | None = None
    i_term_key: str | None = None
    i_deadline: date | None = None
    course_grade: str | None = None

    @property
    def is_incomplete(self) -> bool:
        return self.i_deadline is not None

    @property
    def is_completed(self) -> bool:
        return self.completed == "Y"

    @property
    def is_prereq_satisfied(self) -> bool:
        return self.prereq_satisfied in ("Y", "P")


def insert_registration(reg: Registration) -> None:
    """Insert a registration record.

    Raises:
        sqlite3.IntegrityError: If the student is already registered in the course this term
    """
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO registrations (
                student_id, course_id, section, term_key, pace_order,
                open_status, completed, prereq_satisfied, instruction_type,
                synthetic, i_in_progress, i_counted, i_term_key, i_deadline,
                course_grade
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                reg.student_id,
                reg.course_id,
                reg.section,
                reg.term_key,
                reg.pace_order,
                reg.open_status,
                reg.completed,
                reg.prereq_satisfied,
                reg.instruction_type,
                1 if reg.synthetic else 0,
                reg.i_in_progress,
                reg.i_counted,
                reg.i_term_key,
                to_iso(reg.i_deadline),
                reg.course_grade,
            ),
        )

    logger.debug("registrations.inserted", student_id=reg.student_id, course_id=reg.course_id)


def get_registrations(student_id: str, term_key: str) -> list[Registration]:
    """Get a student's registrations for a term, ordered by course.

    Args:
        student_id: Student identifier
        term_key: Term the registrations belong to (incompletes carried
            into the term are stored under it)

    Returns:
        List of Registration records
    """
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM registrations WHERE student_id = ? AND term_key = ? ORDER BY course_id",
            (student_id, term_key),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def get_registration(student_id: str, course_id: str, term_key: str) -> Registration | None:
    """Get a single registration, or None if the student is not registered."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM registrations WHERE student_id = ? AND course_id = ? AND term_key = ?",
            (student_id, course_id, term_key),
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def update_pace_order(reg: Registration, pace_order: int | None) -> None:
    """Update the pace order of a registration.

    The record passed in is updated to match the stored row.

    Args:
        reg: Registration to update
        pace_order: New pace order, or None to clear it
    """
    with get_db() as conn:
        conn.execute(
            """
            UPDATE registrations SET pace_order = ?
            WHERE student_id = ? AND course_id = ? AND term_key = ?
            """,
            (pace_order, reg.student_id, reg.course_id, reg.term_key),
        )

    reg.pace_order = pace_order
    logger.info(
        "registrations.pace_order_updated",
        student_id=reg.student_id,
        course_id=reg.course_id,
        pace_order=pace_order,
    )


def _row_to_record(row) -> Registration:
    """Convert database row to Registration."""
    return Registration(
        student_id=row["student_id"],
        course_id=row["course_id"],
        section=row["section"],
        term_key=row["term_key"],
        pace_order=row["pace_order"],
        open_status=row["open_status"],
        completed=row["completed"],
        prereq_satisfied=row["prereq_satisfied"],
        instruction_type=row["instruction_type"],
        synthetic=bool(row["synthetic"]),
        i_in_progress=row["i_in_progress"],
        i_counted=row["i_counted"],
        i_term_key=row["i_term_key"],
        i_deadline=parse_date(row["i_deadline"]),
        course_grade=row["course_grade"],
    )
