"""Schedule and pace-order endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status

from precalc.core.pace_order import PaceOrderError
from precalc.core.schedule import ScheduleError, choose_pace_order, load_student_schedule
from precalc.web.params import get_today
from precalc.web.schemas import OrderChoiceRequest, OrderChoiceResponse, ScheduleResponse
from precalc.web.sessions import LoginSession, require_login

router = APIRouter(prefix="/api/schedule", tags=["schedule"])


@router.get("", response_model=ScheduleResponse)
async def get_schedule(
    login: LoginSession = Depends(require_login),
    today: date = Depends(get_today),
) -> ScheduleResponse:
    """Get the exam deadline schedule.

    When the pace order cannot be settled automatically, `resolved` is false
    and `options` lists the orderings to choose from.
    """
    try:
        schedule = load_student_schedule(login.student_id, today)
    except ScheduleError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ScheduleResponse.model_validate(schedule)


@router.post("/order", response_model=OrderChoiceResponse)
async def choose_order(
    request: OrderChoiceRequest,
    login: LoginSession = Depends(require_login),
    today: date = Depends(get_today),
) -> OrderChoiceResponse:
    """Apply the ordering the student chose and return the new schedule."""
    try:
        updated, schedule = choose_pace_order(login.student_id, request.orders, today)
    except ScheduleError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PaceOrderError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return OrderChoiceResponse(updated=updated, schedule=ScheduleResponse.model_validate(schedule))
