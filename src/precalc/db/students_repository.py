"""Repository functions for students."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from precalc.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class Student:
    """Student record from database."""

    student_id: str
    first_name: str = ""
    last_name: str = ""
    email: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.student_id


def insert_student(student: Student) -> None:
    """Insert a student.

    Raises:
        sqlite3.IntegrityError: If student_id already exists
    """
    with get_db() as conn:
        conn.execute(
            "INSERT INTO students (student_id, first_name, last_name, email) VALUES (?, ?, ?, ?)",
            (student.student_id, student.first_name, student.last_name, student.email),
        )

    logger.debug("students.inserted", student_id=student.student_id)


def get_student(student_id: str) -> Student | None:
    """Get student by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM students WHERE student_id = ?", (student_id,)).fetchone()

    if row is None:
        return None

    return Student(
        student_id=row["student_id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
    )
