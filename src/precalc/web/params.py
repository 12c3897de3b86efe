"""Shared request-parameter dependencies for the Web API."""

from __future__ import annotations

from datetime import date

from fastapi import HTTPException, status

from precalc.config.catalog import CatalogCourse, get_course, is_valid_course_id
from precalc.db.registrations_repository import Registration, get_registration
from precalc.db.terms_repository import TermRecord, get_active_term


def get_today() -> date:
    """Current date (overridden in tests)."""
    return date.today()


def require_course(course_id: str) -> CatalogCourse:
    """Look up a course from a request parameter; 404 if malformed or unknown."""
    if not is_valid_course_id(course_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Invalid course ID '{course_id}'",
        )

    course = get_course(course_id)
    if course is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Course '{course_id}' not found",
        )
    return course


def require_active_term() -> TermRecord:
    term = get_active_term()
    if term is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active term",
        )
    return term


def find_registration(student_id: str, course_id: str) -> Registration | None:
    """The student's registration in a course for the active term."""
    return get_registration(student_id, course_id, require_active_term().term_key)
