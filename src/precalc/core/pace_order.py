"""Pace-order assignment.

Every registration that counts toward a student's pace needs a distinct pace
order 1..N; the order decides which milestone deadlines apply to the course.

Responsibilities:
- Verify stored pace orders (complete, 1..N, no gaps or duplicates)
- Reassign orders when they are missing or inconsistent: completed
  incompletes, open incompletes, finished courses, then open courses
- For courses whose order is still undetermined, build every ordering that
  respects the catalog prerequisites; apply it directly when only one
  exists, otherwise offer the orderings to the student
- Apply the ordering the student chose
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping

import structlog

from precalc.config.catalog import catalog_position, get_course
from precalc.core.pace import pace_registrations
from precalc.db.registrations_repository import Registration

logger = structlog.get_logger(__name__)

# Persists a pace order for a registration (None clears it). The caller has
# already set `reg.pace_order`; the callback only has to store it.
SaveOrder = Callable[[Registration, "int | None"], None]

MAX_PACE_ORDER = 9


class PaceOrderError(Exception):
    """Error assigning pace orders."""

    pass


@dataclass
class OrderingOption:
    """One ordering the student may choose for their undetermined courses."""

    option_number: int
    start_order: int
    course_ids: list[str]

    @property
    def orders(self) -> dict[int, str]:
        """Pace order for each course, as submitted back by the student."""
        return {self.start_order + i: cid for i, cid in enumerate(self.course_ids)}


@dataclass
class PaceOrderResult:
    """Outcome of pace-order assignment."""

    resolved: bool
    registrations: list[Registration]
    next_order: int
    options: list[OrderingOption] = field(default_factory=list)

    @property
    def ordered(self) -> list[Registration]:
        """Registrations that have an order, in pace order."""
        placed = [r for r in self.registrations if r.pace_order is not None]
        return sorted(placed, key=lambda r: r.pace_order)


def _sort_key(reg: Registration) -> tuple[int, str]:
    return catalog_position(reg.course_id), reg.course_id


def collect_schedule_registrations(
    regs: Iterable[Registration], site_courses: Iterable[str]
) -> list[Registration]:
    """Registrations shown on the schedule for the courses a site offers.

    Credit-by-exam, forfeit and synthetic registrations are left out.
    """
    offered = set(site_courses)
    return [
        r
        for r in regs
        if r.instruction_type != "OT"
        and r.open_status != "G"
        and not r.synthetic
        and r.course_id in offered
    ]


def sort_pace_order(pace_regs: list[Registration]) -> bool:
    """Check pace orders and sort the list in place when they are consistent.

    Args:
        pace_regs: Registrations that contribute toward pace

    Returns:
        True if every registration has an order and the orders are exactly
        1..N (the list is then sorted by order); False otherwise
    """
    for reg in pace_regs:
        if reg.pace_order is None:
            logger.warning(
                "pace_order.missing",
                student_id=reg.student_id,
                course_id=reg.course_id,
            )
            return False

    orders = sorted(reg.pace_order for reg in pace_regs)
    expected = list(range(1, len(pace_regs) + 1))
    if orders != expected:
        logger.warning(
            "pace_order.inconsistent",
            student_id=pace_regs[0].student_id,
            orders=orders,
            pace=len(pace_regs),
        )
        return False

    pace_regs.sort(key=lambda r: r.pace_order)
    return True


def _set_orders(group: list[Registration], start: int, save: SaveOrder) -> int:
    next_order = start
    for reg in sorted(group, key=_sort_key):
        logger.info(
            "pace_order.assigned",
            student_id=reg.student_id,
            course_id=reg.course_id,
            pace_order=next_order,
        )
        reg.pace_order = next_order
        save(reg, next_order)
        next_order += 1
    return next_order


def _must_follow(reg: Registration, prereq_id: str) -> bool:
    """Whether a registration must wait for a prerequisite in the same pace.

    Only an outright satisfied prerequisite ('Y') frees the course; a
    provisional one ('P') relies on the co-registered course.
    """
    course = get_course(reg.course_id)
    return course is not None and prereq_id in course.prerequisites and reg.prereq_satisfied != "Y"


def valid_orderings(remaining: list[Registration]) -> list[list[Registration]]:
    """Every ordering of the remaining courses that respects prerequisites.

    Orderings are listed with catalog order first.
    """
    base = sorted(remaining, key=_sort_key)
    pending = {r.course_id for r in base}
    result = []

    for perm in itertools.permutations(base):
        placed: set[str] = set()
        valid = True
        for reg in perm:
            course = get_course(reg.course_id)
            prereqs = course.prerequisites if course else []
            for prereq in prereqs:
                if prereq in pending and prereq not in placed and _must_follow(reg, prereq):
                    valid = False
                    break
            if not valid:
                break
            placed.add(reg.course_id)
        if valid:
            result.append(list(perm))

    return result


def assign_pace_order(pace_regs: list[Registration], save: SaveOrder) -> PaceOrderResult:
    """Reassign pace orders from scratch.

    Args:
        pace_regs: Registrations that contribute toward pace
        save: Persists a registration's new order

    Returns:
        PaceOrderResult; when not resolved, `options` holds the orderings
        the student must choose from
    """
    for reg in pace_regs:
        if reg.pace_order is not None:
            reg.pace_order = None
            save(reg, None)

    incomplete = [r for r in pace_regs if r.is_incomplete]
    regular = [r for r in pace_regs if not r.is_incomplete]

    next_order = 1
    next_order = _set_orders([r for r in incomplete if r.is_completed], next_order, save)
    next_order = _set_orders([r for r in incomplete if not r.is_completed], next_order, save)
    next_order = _set_orders(
        [r for r in regular if r.is_completed or r.open_status == "N"], next_order, save
    )
    next_order = _set_orders(
        [r for r in regular if not r.is_completed and r.open_status == "Y"], next_order, save
    )

    remaining = [r for r in pace_regs if r.pace_order is None]

    if len(remaining) > 1:
        satisfied = [r for r in remaining if r.is_prereq_satisfied]
        if len(satisfied) == 1:
            next_order = _set_orders(satisfied, next_order, save)
            remaining.remove(satisfied[0])

    if len(remaining) == 1:
        next_order = _set_orders(remaining, next_order, save)
        remaining = []

    if not remaining:
        sort_pace_order(pace_regs)
        return PaceOrderResult(resolved=True, registrations=pace_regs, next_order=next_order)

    orderings = valid_orderings(remaining)

    if len(orderings) == 1:
        for reg in orderings[0]:
            next_order = _set_orders([reg], next_order, save)
        sort_pace_order(pace_regs)
        return PaceOrderResult(resolved=True, registrations=pace_regs, next_order=next_order)

    if not orderings:
        logger.warning(
            "pace_order.no_valid_ordering",
            student_id=remaining[0].student_id,
            courses=[r.course_id for r in remaining],
        )
        next_order = _set_orders(remaining, next_order, save)
        sort_pace_order(pace_regs)
        return PaceOrderResult(resolved=True, registrations=pace_regs, next_order=next_order)

    options = [
        OrderingOption(
            option_number=index,
            start_order=next_order,
            course_ids=[r.course_id for r in ordering],
        )
        for index, ordering in enumerate(orderings, start=1)
    ]
    logger.info(
        "pace_order.options_offered",
        student_id=remaining[0].student_id,
        start_order=next_order,
        num_options=len(options),
    )
    return PaceOrderResult(
        resolved=False, registrations=pace_regs, next_order=next_order, options=options
    )


def resolve_pace_order(
    regs: Iterable[Registration], site_courses: Iterable[str], save: SaveOrder
) -> tuple[list[Registration], PaceOrderResult]:
    """Collect a student's schedule registrations and settle their pace order.

    Returns:
        (all schedule registrations, pace-order result for the paced ones)
    """
    all_regs = collect_schedule_registrations(regs, site_courses)
    paced = pace_registrations(all_regs)

    if sort_pace_order(paced):
        return all_regs, PaceOrderResult(
            resolved=True, registrations=paced, next_order=len(paced) + 1
        )

    return all_regs, assign_pace_order(paced, save)


def apply_chosen_order(
    choices: Mapping[int, str], regs: Iterable[Registration], save: SaveOrder
) -> int:
    """Apply the pace orders a student picked on the ordering form.

    Args:
        choices: Pace order -> course ID
        regs: The student's registrations
        save: Persists a registration's new order

    Returns:
        Number of registrations updated

    Raises:
        PaceOrderError: If a course is given more than one order
    """
    chosen = list(choices.values())
    duplicates = sorted({cid for cid in chosen if chosen.count(cid) > 1})
    if duplicates:
        raise PaceOrderError(f"Courses chosen more than once: {', '.join(duplicates)}")

    by_course = {r.course_id: r for r in regs}
    updated = 0

    for order, course_id in sorted(choices.items()):
        if not 1 <= order <= MAX_PACE_ORDER:
            logger.warning("pace_order.choice_out_of_range", pace_order=order, course_id=course_id)
            continue
        reg = by_course.get(course_id)
        if reg is None:
            logger.warning("pace_order.choice_unknown_course", pace_order=order, course_id=course_id)
            continue
        logger.info(
            "pace_order.chosen",
            student_id=reg.student_id,
            course_id=course_id,
            pace_order=order,
        )
        reg.pace_order = order
        save(reg, order)
        updated += 1

    return updated
