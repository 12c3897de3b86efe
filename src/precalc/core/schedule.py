"""Student schedule service.

Ties together the active term, the student's registrations, pace-order
resolution and the deadline view. Pace orders are written back to the
registrations table as they are assigned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping

import structlog

from precalc.config.catalog import load_catalog
from precalc.core.deadlines import ScheduleView, build_schedule
from precalc.core.pace import determine_first_course, determine_pace_track
from precalc.core.pace_order import (
    OrderingOption,
    PaceOrderResult,
    apply_chosen_order,
    resolve_pace_order,
)
from precalc.db.registrations_repository import Registration, get_registrations, update_pace_order
from precalc.db.terms_repository import TermRecord, get_active_term

logger = structlog.get_logger(__name__)


class ScheduleError(Exception):
    """Error loading a student's schedule."""

    pass


@dataclass
class StudentSchedule:
    """A student's schedule: either settled with deadlines, or awaiting a choice."""

    student_id: str
    term: TermRecord
    registrations: list[Registration]
    pace_order: PaceOrderResult
    track: str
    first_course: str | None
    view: ScheduleView | None = None
    options: list[OrderingOption] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.pace_order.resolved

    @property
    def pace(self) -> int:
        return len(self.pace_order.registrations)


def _active_term() -> TermRecord:
    term = get_active_term()
    if term is None:
        raise ScheduleError("No active term is configured")
    return term


def load_student_schedule(
    student_id: str, today: date, site_courses: Iterable[str] | None = None
) -> StudentSchedule:
    """Load a student's schedule, assigning pace orders where needed.

    Args:
        student_id: Student to load
        today: Current date
        site_courses: Courses offered on the site (default: whole catalog)

    Raises:
        ScheduleError: If there is no active term
    """
    term = _active_term()
    if site_courses is None:
        site_courses = list(load_catalog())

    regs = get_registrations(student_id, term.term_key)
    all_regs, result = resolve_pace_order(regs, site_courses, update_pace_order)

    schedule = StudentSchedule(
        student_id=student_id,
        term=term,
        registrations=all_regs,
        pace_order=result,
        track=determine_pace_track(all_regs, len(result.registrations)),
        first_course=determine_first_course(all_regs),
        options=result.options,
    )

    if result.resolved:
        schedule.view = build_schedule(student_id, all_regs, result.ordered, term, today)

    logger.info(
        "schedule.loaded",
        student_id=student_id,
        term_key=term.term_key,
        pace=schedule.pace,
        resolved=result.resolved,
    )
    return schedule


def choose_pace_order(
    student_id: str, choices: Mapping[int, str], today: date
) -> tuple[int, StudentSchedule]:
    """Apply a student's chosen ordering and reload their schedule.

    Returns:
        (number of registrations updated, reloaded schedule)

    Raises:
        ScheduleError: If there is no active term
        PaceOrderError: If the choice names a course twice
    """
    term = _active_term()
    regs = get_registrations(student_id, term.term_key)
    updated = apply_chosen_order(choices, regs, update_pace_order)
    return updated, load_student_schedule(student_id, today)
