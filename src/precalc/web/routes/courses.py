"""Course status and outline endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from precalc.core.course_status import build_course_status
from precalc.core.outline import OUTLINE_MODES, build_outline
from precalc.web.params import find_registration, require_course
from precalc.web.schemas import CourseOutlineResponse, CourseStatusResponse
from precalc.web.sessions import LoginSession, require_login

router = APIRouter(prefix="/api/courses", tags=["courses"])


@router.get("/{course_id}/status", response_model=CourseStatusResponse)
async def get_course_status(
    course_id: str, login: LoginSession = Depends(require_login)
) -> CourseStatusResponse:
    """Get the student's progress report in a course."""
    course = require_course(course_id)
    reg = find_registration(login.student_id, course.course_id)
    if reg is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Not registered in {course.course_id}",
        )

    return CourseStatusResponse.model_validate(build_course_status(reg))


@router.get("/{course_id}/outline", response_model=CourseOutlineResponse)
async def get_course_outline(
    course_id: str,
    mode: str = Query(default="course"),
    login: LoginSession = Depends(require_login),
) -> CourseOutlineResponse:
    """Get the module outline of a course.

    Students without a registration see the course in practice mode.
    """
    course = require_course(course_id)
    if mode not in OUTLINE_MODES:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown mode '{mode}'",
        )

    if mode == "course" and find_registration(login.student_id, course.course_id) is None:
        mode = "practice"

    return CourseOutlineResponse.model_validate(build_outline(login.student_id, course, mode))
