"""Homework and exam session endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status

from precalc.core.assignments import (
    ASSIGNMENT_KINDS,
    AssignmentError,
    AssignmentSession,
    get_session_store,
    start_session,
    submit_session,
)
from precalc.db.exams_repository import StudentExam
from precalc.web.params import find_registration, get_today, require_course
from precalc.web.schemas import (
    AnswersRequest,
    AssignmentResponse,
    AssignmentStartRequest,
    SubmitRequest,
    SubmitResponse,
)
from precalc.web.sessions import LoginSession, require_login

router = APIRouter(prefix="/api/assignments", tags=["assignments"])


def _check_kind(kind: str) -> str:
    if kind not in ASSIGNMENT_KINDS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown assignment kind '{kind}'",
        )
    return kind


async def _get_active(kind: str, login: LoginSession, assignment_id: str) -> AssignmentSession:
    session = await get_session_store(_check_kind(kind)).get(login.session_id, assignment_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {kind} in progress for '{assignment_id}'",
        )
    return session


@router.post("/{kind}", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def start_assignment(
    kind: str,
    request: AssignmentStartRequest,
    login: LoginSession = Depends(require_login),
) -> AssignmentResponse:
    """Start (or resume) a homework or exam."""
    _check_kind(kind)
    course = require_course(request.course_id)
    reg = find_registration(login.student_id, course.course_id)

    try:
        session = await start_session(
            kind,
            login.session_id,
            reg,
            course.course_id,
            request.unit,
            request.assignment_id,
        )
    except AssignmentError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    return AssignmentResponse.model_validate(session)


@router.get("/{kind}/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    kind: str, assignment_id: str, login: LoginSession = Depends(require_login)
) -> AssignmentResponse:
    """Get an assignment in progress."""
    session = await _get_active(kind, login, assignment_id)
    session.touch()
    return AssignmentResponse.model_validate(session)


@router.post("/{kind}/{assignment_id}/answers", response_model=AssignmentResponse)
async def update_answers(
    kind: str,
    assignment_id: str,
    request: AnswersRequest,
    login: LoginSession = Depends(require_login),
) -> AssignmentResponse:
    """Merge answers into an assignment in progress."""
    session = await _get_active(kind, login, assignment_id)
    session.answers.update(request.answers)
    session.touch()
    return AssignmentResponse.model_validate(session)


@router.post("/{kind}/{assignment_id}/submit", response_model=SubmitResponse)
async def submit_assignment(
    kind: str,
    assignment_id: str,
    request: SubmitRequest,
    login: LoginSession = Depends(require_login),
    today: date = Depends(get_today),
) -> SubmitResponse:
    """Submit a finished assignment and record its score."""
    store = get_session_store(_check_kind(kind))
    if await store.get_submitted(login.session_id, assignment_id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Assignment {assignment_id} was already submitted.",
        )
    session = await _get_active(kind, login, assignment_id)

    try:
        record = await submit_session(session, request.score, today)
    except AssignmentError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return SubmitResponse(
        assignment_id=assignment_id,
        kind=kind,
        score=record.score,
        passed=record.passed,
        first_passed=record.first_passed if isinstance(record, StudentExam) else None,
    )
