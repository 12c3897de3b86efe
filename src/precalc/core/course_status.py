"""Course status report: standards mastered, points, and grade scale."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from precalc.config.catalog import get_course
from precalc.db.courses_repository import CourseSection, get_course_section
from precalc.db.exams_repository import StudentExam, get_student_exams
from precalc.db.registrations_repository import Registration
from precalc.db.terms_repository import get_term

logger = structlog.get_logger(__name__)

# Maximum scores shown for the usual A thresholds
_MAX_POSSIBLE = {65: 72, 43: 48, 153: 170}


@dataclass
class StandardStatus:
    """Mastery of one learning target."""

    target_number: str
    assignment_id: str
    mastered: bool = False


@dataclass
class GradeScale:
    """Minimum total scores for each letter grade."""

    max_possible: int | None
    a_min: int | None
    b_min: int | None
    c_min: int | None
    d_min: int | None


@dataclass
class CourseStatus:
    """Progress report for one course registration."""

    course_id: str
    label: str
    available: bool = True
    standards: list[StandardStatus] = field(default_factory=list)
    final_passed: bool | None = None
    total_points: int = 0
    incomplete_term: str | None = None
    grade_scale: GradeScale | None = None
    message: str | None = None

    @property
    def standards_mastered(self) -> int:
        return sum(1 for s in self.standards if s.mastered)


def max_possible_score(a_min: int) -> int:
    """Maximum score displayed with a grade scale whose A threshold is `a_min`."""
    return _MAX_POSSIBLE.get(a_min, round(a_min * 0.9))


def grade_scale(section: CourseSection) -> GradeScale | None:
    if not section.display_grade_scale or section.a_min_score is None:
        return None
    return GradeScale(
        max_possible=max_possible_score(section.a_min_score),
        a_min=section.a_min_score,
        b_min=section.b_min_score,
        c_min=section.c_min_score,
        d_min=section.d_min_score,
    )


def total_points(exams: list[StudentExam]) -> int:
    """Sum of the best passing score for each exam."""
    best: dict[tuple[int, str, str], int] = {}
    for exam in exams:
        if not exam.passed:
            continue
        key = (exam.unit, exam.exam_type, exam.exam_id)
        best[key] = max(best.get(key, 0), exam.score)
    return sum(best.values())


def build_course_status(reg: Registration) -> CourseStatus:
    """Build the progress report for a registration.

    A failing course grade hides the report.
    """
    course = get_course(reg.course_id)
    status = CourseStatus(course_id=reg.course_id, label=course.label if course else reg.course_id)

    if reg.course_grade == "F":
        status.available = False
        status.message = "Course status is not available for a course with a failing grade."
        return status

    exams = get_student_exams(reg.student_id, reg.course_id)
    mastered = {(e.unit, e.exam_id) for e in exams if e.exam_type == "U" and e.passed}

    if course is not None:
        for module in course.modules:
            for target in module.learning_targets:
                status.standards.append(
                    StandardStatus(
                        target_number=target.target_number,
                        assignment_id=target.assignment_id,
                        mastered=(module.module_number, target.assignment_id) in mastered,
                    )
                )

    section = get_course_section(reg.course_id, reg.section, reg.term_key)
    if section is not None:
        if section.exam_structure == "UNIT_FINAL":
            status.final_passed = any(e.exam_type == "F" and e.passed for e in exams)
        status.grade_scale = grade_scale(section)

    status.total_points = total_points(exams)

    if reg.is_incomplete and reg.i_term_key:
        inc_term = get_term(reg.i_term_key)
        status.incomplete_term = inc_term.name if inc_term else reg.i_term_key

    logger.debug(
        "course_status.built",
        student_id=reg.student_id,
        course_id=reg.course_id,
        mastered=status.standards_mastered,
        total_points=status.total_points,
    )
    return status
