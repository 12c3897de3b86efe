"""Repository functions for placement attempts and placement credit."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime

from precalc.db.database import get_db
from precalc.utils.dates import parse_datetime, to_iso


@dataclass
class PlacementAttempt:
    """A math placement exam attempt."""

    student_id: str
    version: str
    serial_nbr: int
    start_time: datetime | None = None
    finish_time: datetime | None = None
    placed: str = "N"
    subtests: dict[str, int] = field(default_factory=dict)


@dataclass
class PlacementCredit:
    """Placement or credit earned (or denied) for a course."""

    student_id: str
    course_id: str
    exam_placed: str  # P placed out | C credit
    serial_nbr: int
    denied: bool = False


def insert_placement_attempt(attempt: PlacementAttempt) -> None:
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO placement_attempts (
                student_id, version, serial_nbr, start_time, finish_time, placed, subtests
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                attempt.student_id,
                attempt.version,
                attempt.serial_nbr,
                to_iso(attempt.start_time),
                to_iso(attempt.finish_time),
                attempt.placed,
                json.dumps(attempt.subtests),
            ),
        )


def insert_placement_credit(credit: PlacementCredit) -> None:
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO placement_credit (student_id, course_id, exam_placed, serial_nbr, denied)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                credit.student_id,
                credit.course_id,
                credit.exam_placed,
                credit.serial_nbr,
                1 if credit.denied else 0,
            ),
        )


def get_placement_attempts(student_id: str) -> list[PlacementAttempt]:
    """Get a student's placement attempts, oldest first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM placement_attempts WHERE student_id = ? ORDER BY finish_time, id",
            (student_id,),
        ).fetchall()

    return [
        PlacementAttempt(
            student_id=row["student_id"],
            version=row["version"],
            serial_nbr=row["serial_nbr"],
            start_time=parse_datetime(row["start_time"]),
            finish_time=parse_datetime(row["finish_time"]),
            placed=row["placed"],
            subtests=json.loads(row["subtests"]) if row["subtests"] else {},
        )
        for row in rows
    ]


def get_placement_credit(student_id: str, denied: bool = False) -> list[PlacementCredit]:
    """Get placement credit earned (or, with denied=True, credit denied)."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM placement_credit WHERE student_id = ? AND denied = ? ORDER BY course_id",
            (student_id, 1 if denied else 0),
        ).fetchall()

    return [
        PlacementCredit(
            student_id=row["student_id"],
            course_id=row["course_id"],
            exam_placed=row["exam_placed"],
            serial_nbr=row["serial_nbr"],
            denied=bool(row["denied"]),
        )
        for row in rows
    ]
