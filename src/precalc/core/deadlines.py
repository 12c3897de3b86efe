"""Exam deadline schedule.

Builds the "My Exam Deadlines" view for a student whose pace order is
settled: an opening summary, incomplete courses outside the pace, and a
table of exam deadlines and pass status for each paced course.

Milestone numbers carry the pace index in their tens digit, so a paced
course only sees the milestones whose tens digit equals its pace order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

import structlog

from precalc.config.app_config import load_app_config
from precalc.config.catalog import get_course
from precalc.core.pace import determine_pace_track
from precalc.db.courses_repository import CourseUnit, get_course_section, get_course_units
from precalc.db.exams_repository import StudentExam, get_student_exams
from precalc.db.milestones_repository import Milestone, get_milestones, get_student_milestones
from precalc.db.registrations_repository import Registration
from precalc.db.terms_repository import TermRecord, get_term
from precalc.utils.dates import deadline_proximity, format_md

logger = structlog.get_logger(__name__)

# Milestone types that have no row in the deadline table
SKIPPED_MILESTONE_TYPES = {"US", "SR", "H1", "H2", "H3", "H4", "H5", "UE"}

EXAM_TYPE_BY_MILESTONE = {"RE": "R", "FE": "F"}


@dataclass
class ExamDeadline:
    """One row of a paced course's deadline table."""

    exam_title: str
    exam_type: str
    unit: int
    deadline: date
    status: str
    urgency: str  # normal | soon | overdue
    passed: bool = False


@dataclass
class LastTryWindow:
    """Extra final-exam attempts after the final deadline."""

    deadline: date
    attempts_allowed: int
    attempts_taken: int


@dataclass
class PaceCourseSchedule:
    """Deadlines and notes for one paced course."""

    course_id: str
    label: str
    name: str
    section: str
    pace_order: int | None
    is_incomplete: bool = False
    config_error: str | None = None
    deadlines: list[ExamDeadline] = field(default_factory=list)
    last_try: LastTryWindow | None = None
    notes: list[str] = field(default_factory=list)


@dataclass
class IncompleteDeadline:
    """An incomplete outside the pace and the date it must be finished by."""

    course_id: str
    label: str
    incomplete_term: str | None
    deadline: date
    proximity: str | None = None


@dataclass
class ScheduleView:
    """Everything the schedule page shows."""

    term_name: str
    opening: list[str]
    incompletes: list[IncompleteDeadline] = field(default_factory=list)
    non_scheduled: list[str] = field(default_factory=list)
    courses: list[PaceCourseSchedule] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


def _plural(count: int, word: str) -> str:
    return f"1 {word}" if count == 1 else f"{count} {word}s"


def opening_text(all_regs: list[Registration], pace_regs: list[Registration]) -> list[str]:
    """Summary of how many courses (and incompletes) the student must finish."""
    num_all = len(all_regs)
    num_non_pace = num_all - len(pace_regs)
    num_real = sum(1 for r in pace_regs if not r.synthetic)
    must_pass = "You must PASS each exam listed below by its deadline date."

    if num_non_pace == 0:
        if num_real == 0:
            return ["You are not registered in any Precalculus courses this semester."]
        return [must_pass]

    num_inc = sum(1 for r in all_regs if r.is_incomplete)
    lines = []
    if num_inc == 0:
        lines.append(f"You have {_plural(num_all, 'course')} to finish this semester.")
    elif num_inc == num_all:
        lines.append(f"You have {_plural(num_inc, 'incomplete course')} to finish this semester.")
    else:
        lines.append(
            f"You have {_plural(num_inc, 'incomplete course')} and "
            f"{_plural(num_all - num_inc, 'course')} to finish this semester."
        )

    if pace_regs:
        lines.append(
            f"In addition, you must complete {_plural(num_real, 'Precalculus course')} "
            "according to the schedule shown below."
        )
        lines.append(must_pass)

    return lines


def _incomplete_deadlines(
    non_pace: list[Registration], today: date
) -> list[IncompleteDeadline]:
    result = []
    for reg in non_pace:
        if reg.i_deadline is None:
            continue
        course = get_course(reg.course_id)
        inc_term = get_term(reg.i_term_key) if reg.i_term_key else None
        result.append(
            IncompleteDeadline(
                course_id=reg.course_id,
                label=course.label if course else reg.course_id,
                incomplete_term=inc_term.name if inc_term else reg.i_term_key,
                deadline=reg.i_deadline,
                proximity=deadline_proximity(reg.i_deadline, today)
                if today <= reg.i_deadline
                else None,
            )
        )
    return result


def _exam_title(exam_type: str, unit: int) -> str:
    if exam_type == "R":
        return f"Unit {unit} Review Exam"
    if exam_type == "F":
        return "Final Exam"
    return f"Unit {unit} Exam"


def _exam_status(
    exams: list[StudentExam], deadline: date, on_time_points: int | None, today: date
) -> tuple[str, bool]:
    """Status text for an exam and whether it has been passed."""
    first_passing = next((e for e in exams if e.first_passed), None)
    passed = any(e.passed for e in exams)

    if passed:
        if first_passing is None or not on_time_points:
            return "Passed", True
        when = format_md(first_passing.exam_date)
        if first_passing.exam_date > deadline:
            return f"Passed (on {when}, LATE)", True
        return f"Passed (on {when}, ON TIME)", True

    status = "Not yet passed" if exams else "Not yet attempted"
    proximity = deadline_proximity(deadline, today)
    if proximity is not None:
        status += f" (DEADLINE IS {proximity})"
    return status, False


def _urgency(deadline: date, passed: bool, today: date) -> str:
    if passed or deadline > today + timedelta(days=7):
        return "normal"
    if deadline > today:
        return "soon"
    return "overdue"


def _effective_milestones(
    milestones: list[Milestone], overrides: dict[tuple[int, str], tuple[date, int | None]]
) -> list[Milestone]:
    result = []
    for ms in milestones:
        if (ms.ms_nbr, ms.ms_type) in overrides:
            ms_date, attempts = overrides[(ms.ms_nbr, ms.ms_type)]
            ms = Milestone(
                ms.term_key, ms.pace, ms.track, ms.ms_nbr, ms.ms_type, ms_date,
                attempts if attempts is not None else ms.attempts_allowed,
            )
        result.append(ms)
    return result


def build_pace_course(
    reg: Registration,
    term: TermRecord,
    milestones: list[Milestone],
    today: date,
) -> PaceCourseSchedule:
    """Build the deadline table for one paced course.

    Args:
        reg: The paced registration
        term: Active term
        milestones: Effective milestones (student overrides applied)
        today: Current date
    """
    course = get_course(reg.course_id)
    section = get_course_section(reg.course_id, reg.section, term.term_key)

    schedule = PaceCourseSchedule(
        course_id=reg.course_id,
        label=course.label if course else reg.course_id,
        name=course.name if course else "",
        section=reg.section,
        pace_order=reg.pace_order,
        is_incomplete=reg.is_incomplete,
    )

    if course is None or section is None:
        support = load_app_config().site.support_email
        schedule.config_error = (
            f"{reg.course_id} has a configuration error. "
            f"Please contact the Precalculus Center at {support} to resolve this problem."
        )
        logger.warning(
            "schedule.config_error",
            course_id=reg.course_id,
            section=reg.section,
            term_key=term.term_key,
        )
        return schedule

    has_final = section.exam_structure == "UNIT_FINAL"
    units: dict[int, CourseUnit] = {u.unit: u for u in get_course_units(reg.course_id)}
    exams = get_student_exams(reg.student_id, reg.course_id)
    pace_order = reg.pace_order if reg.pace_order is not None else -1

    mine = [
        ms
        for ms in milestones
        if ms.pace_index == pace_order and ms.ms_type not in SKIPPED_MILESTONE_TYPES
    ]
    final_deadline = next((ms.ms_date for ms in mine if ms.ms_type == "FE"), None)

    for ms in mine:
        unit_model = units.get(ms.unit)
        if unit_model is None:
            continue

        if ms.ms_type == "F1":
            if has_final and final_deadline is not None:
                schedule.last_try = _last_try(ms, exams, final_deadline)
            continue

        exam_type = EXAM_TYPE_BY_MILESTONE.get(ms.ms_type, "U")
        if exam_type == "F" and not has_final:
            continue

        on_time = unit_model.re_points_ontime if exam_type == "R" else None
        unit_exams = [e for e in exams if e.unit == ms.unit and e.exam_type == exam_type]
        status, passed = _exam_status(unit_exams, ms.ms_date, on_time, today)

        schedule.deadlines.append(
            ExamDeadline(
                exam_title=_exam_title(exam_type, ms.unit),
                exam_type=exam_type,
                unit=ms.unit,
                deadline=ms.ms_date,
                status=status,
                urgency=_urgency(ms.ms_date, passed, today),
                passed=passed,
            )
        )

    schedule.notes = _course_notes(list(units.values()), section.review_required)
    return schedule


def _last_try(ms: Milestone, exams: list[StudentExam], final_deadline: date) -> LastTryWindow | None:
    """Last-try window, open only if the final was passed by its deadline."""
    first_passing = next((e for e in exams if e.exam_type == "F" and e.first_passed), None)
    if first_passing is None or first_passing.exam_date > final_deadline:
        return None

    taken = sum(1 for e in exams if e.exam_type == "F" and e.exam_date > final_deadline)
    return LastTryWindow(
        deadline=ms.ms_date,
        attempts_allowed=ms.attempts_allowed if ms.attempts_allowed is not None else 1,
        attempts_taken=taken,
    )


def _course_notes(units: list[CourseUnit], review_required: bool) -> list[str]:
    penalty = max(
        (u.re_points_ontime or 0 for u in units if u.unit_type not in ("SR", "FIN")),
        default=0,
    )
    if penalty <= 0:
        return []

    points = "1 point" if penalty == 1 else f"{penalty} points"
    note = (
        f"Each Review Exam earns {points} if passed by 11:59 PM (Mountain time zone) on its "
        "deadline date. If a Review Exam is not passed by this time, you receive no points "
        "for the Review Exam."
    )
    if review_required:
        note += " However, it must still be passed before you can take the corresponding Unit Exam."
    return [note]


def build_schedule(
    student_id: str,
    all_regs: list[Registration],
    pace_regs: list[Registration],
    term: TermRecord,
    today: date,
) -> ScheduleView:
    """Build the schedule view once pace orders are settled.

    Args:
        student_id: Student whose schedule this is
        all_regs: Registrations shown on the schedule
        pace_regs: Paced registrations, sorted by pace order
        term: Active term
        today: Current date
    """
    view = ScheduleView(term_name=term.name, opening=opening_text(all_regs, pace_regs))

    paced_keys = {(r.course_id, r.section) for r in pace_regs}
    non_pace = [
        r
        for r in all_regs
        if r.instruction_type != "OT" and (r.course_id, r.section) not in paced_keys
    ]
    view.incompletes = _incomplete_deadlines(non_pace, today)
    view.non_scheduled = [
        (get_course(r.course_id).label if get_course(r.course_id) else r.course_id)
        for r in non_pace
        if r.i_deadline is None
    ]

    if not pace_regs:
        return view

    pace = len(pace_regs)
    track = determine_pace_track(all_regs, pace)
    overrides = {
        (sm.ms_nbr, sm.ms_type): (sm.ms_date, sm.attempts_allowed)
        for sm in get_student_milestones(student_id, term.term_key, track)
    }
    milestones = _effective_milestones(get_milestones(term.term_key, pace, track), overrides)

    view.courses = [build_pace_course(reg, term, milestones, today) for reg in pace_regs]

    if any(c.config_error is None and any(d.exam_type == "F" for d in c.deadlines) for c in view.courses):
        view.notes.append(
            "You may retake Unit Exams and Final Exams through the last regular class day of "
            f"the {term.name} term to improve your score in any course in which the Final Exam "
            "is passed by the deadline date."
        )

    if pace > 1 and term.withdraw_deadline is not None and term.withdraw_deadline >= today:
        view.notes.append(
            "If you fail to complete a course by its deadline, you may withdraw from one or more "
            "courses, which will adjust the deadline dates for the courses that remain."
        )

    logger.debug(
        "schedule.built",
        student_id=student_id,
        pace=pace,
        track=track,
        courses=len(view.courses),
    )
    return view
