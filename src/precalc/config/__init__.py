"""Configuration package for the precalculus course site."""

from precalc.config.app_config import (
    AppConfig,
    SessionConfig,
    SiteConfig,
    clear_config_cache,
    load_app_config,
)
from precalc.config.catalog import (
    CatalogCourse,
    CatalogError,
    CourseModule,
    LearningTarget,
    clear_catalog_cache,
    get_course,
    is_paced_course,
    is_valid_course_id,
    list_courses,
    load_catalog,
)

__all__ = [
    "AppConfig",
    "SessionConfig",
    "SiteConfig",
    "clear_config_cache",
    "load_app_config",
    "CatalogCourse",
    "CatalogError",
    "CourseModule",
    "LearningTarget",
    "clear_catalog_cache",
    "get_course",
    "is_paced_course",
    "is_valid_course_id",
    "list_courses",
    "load_catalog",
]
