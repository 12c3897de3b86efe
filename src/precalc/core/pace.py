"""Pace and pace-track determination.

A student's pace is the number of paced courses they must finish this term;
the pace track selects which milestone calendar applies to them.
"""

from __future__ import annotations

from typing import Iterable

from precalc.config.catalog import is_paced_course
from precalc.db.registrations_repository import Registration

# Sections with their own calendars
LATE_START_SECTION = "002"
IN_PERSON_SECTIONS = ("003", "004", "005", "006", "007")


def is_counted_toward_pace(reg: Registration) -> bool:
    """Check whether a registration counts toward the student's pace.

    Credit-by-exam and synthetic registrations never count, nor do dropped
    or forfeit registrations, nor incompletes flagged as not counted.
    """
    if reg.synthetic or reg.instruction_type == "OT":
        return False
    if reg.open_status in ("D", "G"):
        return False
    return not (reg.i_in_progress == "Y" and reg.i_counted == "N")


def pace_registrations(regs: Iterable[Registration]) -> list[Registration]:
    """Registrations in paced courses that count toward pace."""
    return [r for r in regs if is_paced_course(r.course_id) and is_counted_toward_pace(r)]


def determine_pace(regs: Iterable[Registration]) -> int:
    """Number of paced courses counted toward pace."""
    return len(pace_registrations(regs))


def _is_candidate(reg: Registration) -> bool:
    return is_paced_course(reg.course_id) and not reg.synthetic and reg.instruction_type != "OT"


def _find_pace_section(regs: list[Registration]) -> str | None:
    # Regular registrations first, then counted incompletes, then the rest
    for reg in regs:
        if _is_candidate(reg) and reg.i_in_progress == "N" and reg.open_status not in ("D", "G"):
            return reg.section

    for reg in regs:
        if _is_candidate(reg) and reg.i_in_progress == "Y" and reg.i_counted == "Y":
            return reg.section

    section = None
    for reg in regs:
        if (
            _is_candidate(reg)
            and reg.open_status not in ("D", "G")
            and reg.i_in_progress == "Y"
            and reg.i_counted == "N"
        ):
            section = reg.section
    return section


def determine_pace_track(regs: Iterable[Registration], pace: int | None = None) -> str:
    """Determine the pace track for a set of registrations.

    Args:
        regs: The student's registrations
        pace: Pace, if already known

    Returns:
        Track letter ("A" through "E")
    """
    regs = list(regs)
    if pace is None:
        pace = determine_pace(regs)

    counted = {r.course_id for r in regs if is_counted_toward_pace(r)}
    section = _find_pace_section(regs)

    if section == LATE_START_SECTION:
        return "C"
    if section in IN_PERSON_SECTIONS:
        return "E" if counted & {"M 125", "M 126"} else "D"
    if pace == 2:
        return "A" if "M 125" in counted else "B"
    if pace == 1:
        return "A" if counted & {"M 117", "M 124"} else "B"
    return "A"


def determine_first_course(regs: Iterable[Registration]) -> str | None:
    """Identify the course the student should work on first.

    If courses are open, the open course with the lowest pace order wins.
    Otherwise the lowest-numbered course whose prerequisite is satisfied,
    or failing that, the lowest-numbered course.
    """
    paced = pace_registrations(regs)
    open_regs = [r for r in paced if r.open_status == "Y"]

    if open_regs:
        ordered = sorted(
            open_regs,
            key=lambda r: (r.pace_order is None, r.pace_order or 0, r.course_id),
        )
        return ordered[0].course_id

    satisfied = sorted(r.course_id for r in paced if r.is_prereq_satisfied)
    if satisfied:
        return satisfied[0]

    remaining = sorted(r.course_id for r in paced)
    return remaining[0] if remaining else None
