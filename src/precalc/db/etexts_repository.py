"""Repository functions for e-texts and student e-text access records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from precalc.db.database import get_db
from precalc.utils.dates import parse_date, to_iso


@dataclass
class StudentEText:
    """A student's access record for a licensed e-text."""

    student_id: str
    etext_id: str
    title: str
    course_id: str | None = None
    active_date: date | None = None
    expiration_date: date | None = None
    refund_deadline: date | None = None
    refund_date: date | None = None
    refund_reason: str | None = None


def insert_etext(etext_id: str, title: str, course_id: str | None = None) -> None:
    with get_db() as conn:
        conn.execute(
            "INSERT INTO etexts (etext_id, title, course_id) VALUES (?, ?, ?)",
            (etext_id, title, course_id),
        )


def insert_student_etext(record: StudentEText) -> None:
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO student_etexts (
                student_id, etext_id, active_date, expiration_date,
                refund_deadline, refund_date, refund_reason
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.student_id,
                record.etext_id,
                to_iso(record.active_date),
                to_iso(record.expiration_date),
                to_iso(record.refund_deadline),
                to_iso(record.refund_date),
                record.refund_reason,
            ),
        )


def get_student_etexts(student_id: str) -> list[StudentEText]:
    """Get a student's e-text records, joined with e-text titles."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT s.*, e.title, e.course_id FROM student_etexts s
            JOIN etexts e ON e.etext_id = s.etext_id
            WHERE s.student_id = ?
            ORDER BY s.active_date, s.etext_id
            """,
            (student_id,),
        ).fetchall()

    return [
        StudentEText(
            student_id=row["student_id"],
            etext_id=row["etext_id"],
            title=row["title"],
            course_id=row["course_id"],
            active_date=parse_date(row["active_date"]),
            expiration_date=parse_date(row["expiration_date"]),
            refund_deadline=parse_date(row["refund_deadline"]),
            refund_date=parse_date(row["refund_date"]),
            refund_reason=row["refund_reason"],
        )
        for row in rows
    ]
