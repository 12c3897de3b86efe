"""Course outline: modules with Skills Review, Learning Target and Exploration status.

Learning Target assignments stay locked until the module's Skills Review is
passed. The outline mode changes titles and locking:
- course: normal view
- practice: nothing locked, titles prefixed with "Practice"
- locked: everything listed, nothing can be started
"""

from __future__ import annotations

from dataclasses import dataclass, field

from precalc.config.catalog import CatalogCourse, CourseModule
from precalc.db.exams_repository import HomeworkAttempt, get_homework_attempts

OUTLINE_MODES = ("course", "practice", "locked")


class OutlineError(Exception):
    """Error building a course outline."""

    pass


@dataclass
class OutlineItem:
    assignment_id: str
    title: str
    status: str  # not_attempted | attempted | passed
    locked: bool = False
    best_score: int | None = None


@dataclass
class ModuleOutline:
    module_number: int
    title: str
    skills_review: OutlineItem
    learning_targets: list[OutlineItem] = field(default_factory=list)
    explorations: list[OutlineItem] = field(default_factory=list)


@dataclass
class CourseOutline:
    course_id: str
    label: str
    mode: str
    modules: list[ModuleOutline] = field(default_factory=list)


def _status(attempts: list[HomeworkAttempt]) -> tuple[str, int | None]:
    if not attempts:
        return "not_attempted", None
    best = max(a.score for a in attempts)
    if any(a.passed for a in attempts):
        return "passed", best
    return "attempted", best


def _title(mode: str, text: str) -> str:
    return f"Practice {text}" if mode == "practice" else text


def build_module(module: CourseModule, attempts: list[HomeworkAttempt], mode: str) -> ModuleOutline:
    by_assignment: dict[str, list[HomeworkAttempt]] = {}
    for attempt in attempts:
        by_assignment.setdefault(attempt.assignment_id, []).append(attempt)

    sr_status, sr_best = _status(by_assignment.get(module.skills_review, []))
    skills_review = OutlineItem(
        assignment_id=module.skills_review,
        title=_title(mode, f"Module {module.module_number} Skills Review"),
        status=sr_status,
        locked=mode == "locked",
        best_score=sr_best,
    )

    targets_locked = mode == "locked" or (mode == "course" and sr_status != "passed")
    targets = []
    for target in module.learning_targets:
        lt_status, lt_best = _status(by_assignment.get(target.assignment_id, []))
        targets.append(
            OutlineItem(
                assignment_id=target.assignment_id,
                title=_title(mode, f"Learning Target {target.target_number} Assignment"),
                status=lt_status,
                locked=targets_locked,
                best_score=lt_best,
            )
        )

    explorations = [
        OutlineItem(
            assignment_id=exploration,
            title=_title(mode, f"Module {module.module_number} Exploration {index}"),
            status=_status(by_assignment.get(exploration, []))[0],
            locked=mode == "locked",
        )
        for index, exploration in enumerate(module.explorations, start=1)
    ]

    return ModuleOutline(
        module_number=module.module_number,
        title=module.title,
        skills_review=skills_review,
        learning_targets=targets,
        explorations=explorations,
    )


def build_outline(student_id: str, course: CatalogCourse, mode: str = "course") -> CourseOutline:
    """Build the module outline for a student in a course.

    Raises:
        OutlineError: If the mode is not recognized
    """
    if mode not in OUTLINE_MODES:
        raise OutlineError(f"Unknown outline mode: {mode}")

    attempts = get_homework_attempts(student_id, course.course_id)
    outline = CourseOutline(course_id=course.course_id, label=course.label, mode=mode)
    for module in course.modules:
        module_attempts = [a for a in attempts if a.unit == module.module_number]
        outline.modules.append(build_module(module, module_attempts, mode))
    return outline
