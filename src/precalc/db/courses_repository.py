"""Repository functions for course sections and course units."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from precalc.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class CourseSection:
    """Per-term configuration of a course section."""

    course_id: str
    section: str
    term_key: str
    exam_structure: str = "UNIT_FINAL"  # UNIT_FINAL | MASTERY
    review_required: bool = True
    display_grade_scale: bool = True
    a_min_score: int | None = None
    b_min_score: int | None = None
    c_min_score: int | None = None
    d_min_score: int | None = None


@dataclass
class CourseUnit:
    """A unit of a course."""

    course_id: str
    unit: int
    unit_type: str = "INST"  # INST | SR (skills review) | FIN (final)
    re_points_ontime: int | None = None


def insert_course_section(section: CourseSection) -> None:
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO course_sections (
                course_id, section, term_key, exam_structure, review_required,
                display_grade_scale, a_min_score, b_min_score, c_min_score, d_min_score
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                section.course_id,
                section.section,
                section.term_key,
                section.exam_structure,
                1 if section.review_required else 0,
                1 if section.display_grade_scale else 0,
                section.a_min_score,
                section.b_min_score,
                section.c_min_score,
                section.d_min_score,
            ),
        )

    logger.debug("course_sections.inserted", course_id=section.course_id, section=section.section)


def get_course_section(course_id: str, section: str, term_key: str) -> CourseSection | None:
    """Get a course section, or None if it is not configured for the term."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM course_sections WHERE course_id = ? AND section = ? AND term_key = ?",
            (course_id, section, term_key),
        ).fetchone()

    if row is None:
        return None

    return CourseSection(
        course_id=row["course_id"],
        section=row["section"],
        term_key=row["term_key"],
        exam_structure=row["exam_structure"],
        review_required=bool(row["review_required"]),
        display_grade_scale=bool(row["display_grade_scale"]),
        a_min_score=row["a_min_score"],
        b_min_score=row["b_min_score"],
        c_min_score=row["c_min_score"],
        d_min_score=row["d_min_score"],
    )


def insert_course_unit(unit: CourseUnit) -> None:
    with get_db() as conn:
        conn.execute(
            "INSERT INTO course_units (course_id, unit, unit_type, re_points_ontime) VALUES (?, ?, ?, ?)",
            (unit.course_id, unit.unit, unit.unit_type, unit.re_points_ontime),
        )


def get_course_units(course_id: str) -> list[CourseUnit]:
    """Get the units of a course, in unit order."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM course_units WHERE course_id = ? ORDER BY unit", (course_id,)
        ).fetchall()

    return [
        CourseUnit(
            course_id=row["course_id"],
            unit=row["unit"],
            unit_type=row["unit_type"],
            re_points_ontime=row["re_points_ontime"],
        )
        for row in rows
    ]
