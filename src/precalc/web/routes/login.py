"""Login endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from precalc.db.students_repository import get_student
from precalc.web.schemas import LoginRequest, LoginResponse
from precalc.web.sessions import SESSION_COOKIE, LoginSession, get_login_manager, require_login

router = APIRouter(prefix="/api/login", tags=["login"])


@router.post("", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def login(request: LoginRequest, response: Response) -> LoginResponse:
    """Start a login session for a known student."""
    student = get_student(request.student_id)
    if student is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Student '{request.student_id}' not found",
        )

    session = await get_login_manager().create_session(student.student_id)
    response.set_cookie(SESSION_COOKIE, session.session_id, httponly=True, samesite="lax")

    return LoginResponse(
        session_id=session.session_id,
        student_id=student.student_id,
        display_name=student.display_name,
        expires_at=session.expires_at.isoformat(),
    )


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response, login: LoginSession = Depends(require_login)) -> None:
    """End the caller's login session."""
    await get_login_manager().end_session(login.session_id)
    response.delete_cookie(SESSION_COOKIE)
