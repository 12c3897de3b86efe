"""Repository functions for student exams and homework attempts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import structlog

from precalc.db.database import get_db
from precalc.utils.dates import parse_date, to_iso

logger = structlog.get_logger(__name__)


@dataclass
class StudentExam:
    """An exam attempt by a student."""

    student_id: str
    course_id: str
    unit: int
    exam_id: str
    exam_type: str  # R review | U unit | F final
    exam_date: date
    score: int
    passed: bool = False
    first_passed: bool = False
    id: int | None = None


@dataclass
class HomeworkAttempt:
    """A homework (or learning target assignment) attempt."""

    student_id: str
    course_id: str
    unit: int
    assignment_id: str
    attempt_date: date
    score: int
    passed: bool = False
    id: int | None = None


def insert_student_exam(exam: StudentExam) -> StudentExam:
    """Record an exam attempt.

    The first passing attempt for a course/unit/exam type is flagged as
    first-passed; later passing attempts are not.

    Returns:
        The exam record with its id and first_passed flag filled in
    """
    with get_db() as conn:
        if exam.passed:
            prior = conn.execute(
                """
                SELECT COUNT(*) FROM student_exams
                WHERE student_id = ? AND course_id = ? AND unit = ? AND exam_type = ? AND passed = 'Y'
                """,
                (exam.student_id, exam.course_id, exam.unit, exam.exam_type),
            ).fetchone()[0]
            exam.first_passed = prior == 0
        else:
            exam.first_passed = False

        cursor = conn.execute(
            """
            INSERT INTO student_exams (
                student_id, course_id, unit, exam_id, exam_type, exam_date,
                score, passed, first_passed
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                exam.student_id,
                exam.course_id,
                exam.unit,
                exam.exam_id,
                exam.exam_type,
                to_iso(exam.exam_date),
                exam.score,
                "Y" if exam.passed else "N",
                "Y" if exam.first_passed else "N",
            ),
        )
        exam.id = cursor.lastrowid

    logger.info(
        "student_exams.inserted",
        student_id=exam.student_id,
        course_id=exam.course_id,
        unit=exam.unit,
        exam_type=exam.exam_type,
        passed=exam.passed,
    )
    return exam


def get_student_exams(student_id: str, course_id: str, unit: int | None = None) -> list[StudentExam]:
    """Get a student's exams in a course (optionally one unit), oldest first."""
    query = "SELECT * FROM student_exams WHERE student_id = ? AND course_id = ?"
    params: tuple = (student_id, course_id)
    if unit is not None:
        query += " AND unit = ?"
        params = params + (unit,)
    query += " ORDER BY exam_date, id"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [
        StudentExam(
            student_id=row["student_id"],
            course_id=row["course_id"],
            unit=row["unit"],
            exam_id=row["exam_id"],
            exam_type=row["exam_type"],
            exam_date=parse_date(row["exam_date"]),
            score=row["score"],
            passed=row["passed"] == "Y",
            first_passed=row["first_passed"] == "Y",
            id=row["id"],
        )
        for row in rows
    ]


def insert_homework_attempt(attempt: HomeworkAttempt) -> HomeworkAttempt:
    """Record a homework attempt."""
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO homework_attempts (
                student_id, course_id, unit, assignment_id, attempt_date, score, passed
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                attempt.student_id,
                attempt.course_id,
                attempt.unit,
                attempt.assignment_id,
                to_iso(attempt.attempt_date),
                attempt.score,
                "Y" if attempt.passed else "N",
            ),
        )
        attempt.id = cursor.lastrowid

    logger.info(
        "homework_attempts.inserted",
        student_id=attempt.student_id,
        assignment_id=attempt.assignment_id,
        passed=attempt.passed,
    )
    return attempt


def get_homework_attempts(
    student_id: str, course_id: str, unit: int | None = None
) -> list[HomeworkAttempt]:
    """Get a student's homework attempts in a course (optionally one unit)."""
    query = "SELECT * FROM homework_attempts WHERE student_id = ? AND course_id = ?"
    params: tuple = (student_id, course_id)
    if unit is not None:
        query += " AND unit = ?"
        params = params + (unit,)
    query += " ORDER BY attempt_date, id"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [
        HomeworkAttempt(
            student_id=row["student_id"],
            course_id=row["course_id"],
            unit=row["unit"],
            assignment_id=row["assignment_id"],
            attempt_date=parse_date(row["attempt_date"]),
            score=row["score"],
            passed=row["passed"] == "Y",
            id=row["id"],
        )
        for row in rows
    ]
