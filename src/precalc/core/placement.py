"""Placement report: placement tool attempts and the credit they earned."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from precalc.config.catalog import get_course
from precalc.db.placement_repository import (
    PlacementAttempt,
    get_placement_attempts,
    get_placement_credit,
)

CREDIT_KINDS = {"P": "Placed out", "C": "Credit earned"}


@dataclass
class AttemptSummary:
    version: str
    serial_nbr: int
    started: datetime | None
    duration: str | None
    placed: bool
    subtests: dict[str, int] = field(default_factory=dict)


@dataclass
class CreditEntry:
    course_id: str
    label: str
    kind: str


@dataclass
class PlacementReport:
    attempts: list[AttemptSummary] = field(default_factory=list)
    credit: list[CreditEntry] = field(default_factory=list)
    denied: list[CreditEntry] = field(default_factory=list)

    @property
    def attempted(self) -> bool:
        return bool(self.attempts)


def format_duration(start: datetime | None, finish: datetime | None) -> str | None:
    """Elapsed time as mm:ss (minutes may exceed 59)."""
    if start is None or finish is None:
        return None
    seconds = max(int((finish - start).total_seconds()), 0)
    return f"{seconds // 60}:{seconds % 60:02d}"


def summarize_attempt(attempt: PlacementAttempt) -> AttemptSummary:
    return AttemptSummary(
        version=attempt.version,
        serial_nbr=attempt.serial_nbr,
        started=attempt.start_time,
        duration=format_duration(attempt.start_time, attempt.finish_time),
        placed=attempt.placed == "Y",
        subtests=dict(attempt.subtests),
    )


def _label(course_id: str) -> str:
    course = get_course(course_id)
    return course.label if course else course_id


def build_placement_report(student_id: str) -> PlacementReport:
    report = PlacementReport()
    report.attempts = [summarize_attempt(a) for a in get_placement_attempts(student_id)]
    report.credit = [
        CreditEntry(c.course_id, _label(c.course_id), CREDIT_KINDS.get(c.exam_placed, c.exam_placed))
        for c in get_placement_credit(student_id)
    ]
    report.denied = [
        CreditEntry(c.course_id, _label(c.course_id), CREDIT_KINDS.get(c.exam_placed, c.exam_placed))
        for c in get_placement_credit(student_id, denied=True)
    ]
    return report
