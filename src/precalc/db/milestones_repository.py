"""Repository functions for milestones and student milestone overrides.

Milestone numbers encode pace, pace index and unit as three digits: 423 is
pace 4, the second course in the pace, unit 3.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import structlog

from precalc.db.database import get_db
from precalc.utils.dates import parse_date, to_iso

logger = structlog.get_logger(__name__)


@dataclass
class Milestone:
    """A deadline for a pace/track/unit combination."""

    term_key: str
    pace: int
    track: str
    ms_nbr: int
    ms_type: str  # RE review exam | FE final | F1 final last try | UE unit exam | ...
    ms_date: date
    attempts_allowed: int | None = None

    @property
    def pace_index(self) -> int:
        return (self.ms_nbr // 10) % 10

    @property
    def unit(self) -> int:
        return self.ms_nbr % 10


@dataclass
class StudentMilestone:
    """A per-student override of a milestone date."""

    student_id: str
    term_key: str
    track: str
    ms_nbr: int
    ms_type: str
    ms_date: date
    attempts_allowed: int | None = None


def insert_milestone(ms: Milestone) -> None:
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO milestones (term_key, pace, track, ms_nbr, ms_type, ms_date, attempts_allowed)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (ms.term_key, ms.pace, ms.track, ms.ms_nbr, ms.ms_type, to_iso(ms.ms_date), ms.attempts_allowed),
        )


def insert_student_milestone(ms: StudentMilestone) -> None:
    with get_db() as conn:
        conn.execute(
            """
            INSERT OR REPLACE INTO student_milestones (
                student_id, term_key, track, ms_nbr, ms_type, ms_date, attempts_allowed
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                ms.student_id,
                ms.term_key,
                ms.track,
                ms.ms_nbr,
                ms.ms_type,
                to_iso(ms.ms_date),
                ms.attempts_allowed,
            ),
        )

    logger.info("student_milestones.saved", student_id=ms.student_id, ms_nbr=ms.ms_nbr, ms_type=ms.ms_type)


def get_milestones(term_key: str, pace: int, track: str) -> list[Milestone]:
    """Get the milestones for a pace and track, in milestone order."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM milestones WHERE term_key = ? AND pace = ? AND track = ?
            ORDER BY ms_nbr, ms_type
            """,
            (term_key, pace, track),
        ).fetchall()

    return [
        Milestone(
            term_key=row["term_key"],
            pace=row["pace"],
            track=row["track"],
            ms_nbr=row["ms_nbr"],
            ms_type=row["ms_type"],
            ms_date=parse_date(row["ms_date"]),
            attempts_allowed=row["attempts_allowed"],
        )
        for row in rows
    ]


def get_student_milestones(student_id: str, term_key: str, track: str) -> list[StudentMilestone]:
    """Get a student's milestone overrides for a term and track."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM student_milestones WHERE student_id = ? AND term_key = ? AND track = ?",
            (student_id, term_key, track),
        ).fetchall()

    return [
        StudentMilestone(
            student_id=row["student_id"],
            term_key=row["term_key"],
            track=row["track"],
            ms_nbr=row["ms_nbr"],
            ms_type=row["ms_type"],
            ms_date=parse_date(row["ms_date"]),
            attempts_allowed=row["attempts_allowed"],
        )
        for row in rows
    ]
