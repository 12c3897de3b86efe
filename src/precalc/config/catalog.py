"""Course catalog loader.

Loads the precalculus course catalog from catalog_v1.yaml in the configured
config directory (paths.config_dir, data/config by default).
Each course names the courses that must precede it in a student's pace,
which is what the pace-ordering logic uses to build valid orderings.

Usage:
    from precalc.config.catalog import get_course, list_courses

    course = get_course("M 124")
    paced = [c.course_id for c in list_courses() if c.paced]
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import structlog
import yaml

from precalc.config.app_config import load_app_config

logger = structlog.get_logger(__name__)

# Catalog file name, inside paths.config_dir
CATALOG_FILE_NAME = "catalog_v1.yaml"

COURSE_ID_PATTERN = re.compile(r"^[A-Z]{1,4} ?\d{3}$")


class CatalogError(Exception):
    """Error in catalog configuration."""

    pass


@dataclass
class LearningTarget:
    """A learning target inside a module, with its assignment."""

    target_number: str
    assignment_id: str


@dataclass
class CourseModule:
    """One module of a standards-based course."""

    module_number: int
    title: str
    skills_review: str
    learning_targets: list[LearningTarget] = field(default_factory=list)
    explorations: list[str] = field(default_factory=list)


@dataclass
class CatalogCourse:
    """A course offered on the site."""

    course_id: str
    label: str
    name: str
    prerequisites: list[str] = field(default_factory=list)
    paced: bool = True
    units: int = 4
    modules: list[CourseModule] = field(default_factory=list)

    def get_module(self, module_number: int) -> CourseModule | None:
        for module in self.modules:
            if module.module_number == module_number:
                return module
        return None


# Module-level cache (insertion order is catalog order)
_cached_catalog: dict[str, CatalogCourse] | None = None


def is_valid_course_id(course_id: str | None) -> bool:
    """Check that a course ID is well-formed (e.g. "M 117", "MATH117")."""
    return bool(course_id) and COURSE_ID_PATTERN.match(course_id) is not None


def _default_modules(slug: str, count: int) -> list[CourseModule]:
    """Three learning targets and one exploration per module."""
    return [
        CourseModule(
            module_number=n,
            title=f"Module {n}",
            skills_review=f"{slug}SR{n}",
            learning_targets=[
                LearningTarget(target_number=f"{n}.{t}", assignment_id=f"{slug}{n}{t}")
                for t in range(1, 4)
            ],
            explorations=[f"{slug}EX{n}"],
        )
        for n in range(1, count + 1)
    ]


def _get_default_catalog() -> dict[str, CatalogCourse]:
    """Get the default five-course precalculus catalog."""
    courses = [
        CatalogCourse("M 117", "MATH 117", "College Algebra in Context I", [], True, 4),
        CatalogCourse("M 118", "MATH 118", "College Algebra in Context II", ["M 117"], True, 4),
        CatalogCourse("M 124", "MATH 124", "Logarithmic and Exponential Functions", ["M 118"], True, 4),
        CatalogCourse("M 125", "MATH 125", "Numerical Trigonometry", ["M 118"], True, 4),
        CatalogCourse("M 126", "MATH 126", "Analytic Trigonometry", ["M 125"], True, 4),
    ]
    for course in courses:
        course.modules = _default_modules(course.label.replace(" ", ""), course.units)
    return {c.course_id: c for c in courses}


def _parse_module(data: dict) -> CourseModule:
    return CourseModule(
        module_number=int(data["module_number"]),
        title=data.get("title", f"Module {data['module_number']}"),
        skills_review=data.get("skills_review", ""),
        learning_targets=[
            LearningTarget(target_number=str(lt["target_number"]), assignment_id=lt["assignment_id"])
            for lt in data.get("learning_targets", [])
        ],
        explorations=list(data.get("explorations", [])),
    )


def _parse_catalog(data: dict) -> dict[str, CatalogCourse]:
    """Parse catalog YAML into CatalogCourse objects.

    Raises:
        CatalogError: If a course ID is malformed or a prerequisite is unknown
    """
    courses: dict[str, CatalogCourse] = {}
    for cid, cdata in (data.get("courses") or {}).items():
        if not is_valid_course_id(cid):
            raise CatalogError(f"Invalid course ID in catalog: {cid!r}")
        units = int(cdata.get("units", 4))
        label = cdata.get("label", cid)
        modules_data = cdata.get("modules")
        modules = (
            [_parse_module(m) for m in modules_data]
            if modules_data
            else _default_modules(label.replace(" ", ""), units)
        )
        courses[cid] = CatalogCourse(
            course_id=cid,
            label=label,
            name=cdata.get("name", cid),
            prerequisites=list(cdata.get("prerequisites", [])),
            paced=cdata.get("paced", True),
            units=units,
            modules=modules,
        )

    for course in courses.values():
        for prereq in course.prerequisites:
            if prereq not in courses:
                raise CatalogError(
                    f"Course {course.course_id} lists unknown prerequisite {prereq}"
                )

    return courses


def load_catalog(force_reload: bool = False) -> dict[str, CatalogCourse]:
    """Load the course catalog from config file.

    Args:
        force_reload: If True, ignore cache and reload from file.

    Returns:
        Dictionary mapping course ID to CatalogCourse, in catalog order.
    """
    global _cached_catalog

    if _cached_catalog is not None and not force_reload:
        return _cached_catalog

    catalog_file = load_app_config().config_dir / CATALOG_FILE_NAME
    if not catalog_file.exists():
        logger.debug("catalog_file_not_found", path=str(catalog_file))
        _cached_catalog = _get_default_catalog()
        return _cached_catalog

    data = yaml.safe_load(catalog_file.read_text(encoding="utf-8")) or {}
    _cached_catalog = _parse_catalog(data)
    logger.debug("loaded_catalog", count=len(_cached_catalog))
    return _cached_catalog


def get_course(course_id: str) -> CatalogCourse | None:
    """Get a specific course by ID.

    Args:
        course_id: The course identifier (e.g., "M 117")

    Returns:
        CatalogCourse or None if not in the catalog.
    """
    return load_catalog().get(course_id)


def list_courses() -> list[CatalogCourse]:
    """List all courses in catalog order."""
    return list(load_catalog().values())


def is_paced_course(course_id: str) -> bool:
    """Check whether a course contributes to a student's pace."""
    course = get_course(course_id)
    return course is not None and course.paced


def catalog_position(course_id: str) -> int:
    """Position of a course in catalog order (unknown courses sort last)."""
    for index, cid in enumerate(load_catalog()):
        if cid == course_id:
            return index
    return len(load_catalog())


def clear_catalog_cache() -> None:
    """Clear the catalog cache."""
    global _cached_catalog
    _cached_catalog = None
