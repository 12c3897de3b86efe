"""YAML fixture loader.

Seeds the database from a YAML document whose top-level keys name record
sections (terms, students, registrations, milestones, ...). Each section is
a list of mappings with the same field names as the repository dataclasses.

Example:
    terms:
      - {term_key: SP24, name: "Spring, 2024", start_date: 2024-01-16,
         end_date: 2024-05-10, active: true}
    registrations:
      - {student_id: "111223333", course_id: "M 117", section: "001", term_key: SP24}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import structlog
import yaml

from precalc.db.courses_repository import (
    CourseSection,
    CourseUnit,
    insert_course_section,
    insert_course_unit,
)
from precalc.db.etexts_repository import StudentEText, insert_etext, insert_student_etext
from precalc.db.exams_repository import (
    HomeworkAttempt,
    StudentExam,
    insert_homework_attempt,
    insert_student_exam,
)
from precalc.db.milestones_repository import (
    Milestone,
    StudentMilestone,
    insert_milestone,
    insert_student_milestone,
)
from precalc.db.placement_repository import (
    PlacementAttempt,
    PlacementCredit,
    insert_placement_attempt,
    insert_placement_credit,
)
from precalc.db.registrations_repository import Registration, insert_registration
from precalc.db.students_repository import Student, insert_student
from precalc.db.terms_repository import TermRecord, insert_term
from precalc.utils.dates import parse_date, parse_datetime

logger = structlog.get_logger(__name__)


class FixtureError(Exception):
    """Error loading a fixture."""

    pass


def _etext(row: dict[str, Any]) -> None:
    insert_etext(row["etext_id"], row["title"], row.get("course_id"))


def _dated(factory: Callable, *date_fields: str, datetime_fields: tuple[str, ...] = ()) -> Callable:
    """Build a record from a row, parsing the named date fields."""

    def build(row: dict[str, Any]):
        values = dict(row)
        for name in date_fields:
            if name in values:
                values[name] = parse_date(values[name])
        for name in datetime_fields:
            if name in values:
                values[name] = parse_datetime(values[name])
        return factory(**values)

    return build


# Insertion order matters: e-texts before student e-texts
_SECTIONS: dict[str, tuple[Callable, Callable]] = {
    "terms": (_dated(TermRecord, "start_date", "end_date", "withdraw_deadline"), insert_term),
    "students": (lambda row: Student(**row), insert_student),
    "course_sections": (lambda row: CourseSection(**row), insert_course_section),
    "course_units": (lambda row: CourseUnit(**row), insert_course_unit),
    "registrations": (_dated(Registration, "i_deadline"), insert_registration),
    "milestones": (_dated(Milestone, "ms_date"), insert_milestone),
    "student_milestones": (_dated(StudentMilestone, "ms_date"), insert_student_milestone),
    "student_exams": (_dated(StudentExam, "exam_date"), insert_student_exam),
    "homework_attempts": (_dated(HomeworkAttempt, "attempt_date"), insert_homework_attempt),
    "etexts": (lambda row: row, _etext),
    "student_etexts": (
        _dated(
            lambda **kw: StudentEText(title="", **kw),
            "active_date",
            "expiration_date",
            "refund_deadline",
            "refund_date",
        ),
        insert_student_etext,
    ),
    "placement_attempts": (
        _dated(PlacementAttempt, datetime_fields=("start_time", "finish_time")),
        insert_placement_attempt,
    ),
    "placement_credit": (lambda row: PlacementCredit(**row), insert_placement_credit),
}


def load_fixture_data(data: dict[str, Any]) -> dict[str, int]:
    """Insert every section of a parsed fixture.

    Args:
        data: Parsed fixture document

    Returns:
        Number of rows inserted per section

    Raises:
        FixtureError: If a section is unknown or a row has bad fields
    """
    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise FixtureError(f"Unknown fixture sections: {', '.join(sorted(unknown))}")

    counts: dict[str, int] = {}
    for section, (build, insert) in _SECTIONS.items():
        rows = data.get(section) or []
        for index, row in enumerate(rows):
            try:
                insert(build(row))
            except (TypeError, KeyError, ValueError) as e:
                raise FixtureError(f"{section}[{index}]: {e}") from e
        if rows:
            counts[section] = len(rows)

    logger.info("fixture.loaded", **counts)
    return counts


def load_fixture(path: Path) -> dict[str, int]:
    """Load a YAML fixture file into the database."""
    if not path.exists():
        raise FixtureError(f"Fixture not found: {path}")

    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise FixtureError(f"Fixture must be a mapping of sections: {path}")

    return load_fixture_data(data)
