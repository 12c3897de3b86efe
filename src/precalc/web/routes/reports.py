"""E-text and placement report endpoints."""

from datetime import date

from fastapi import APIRouter, Depends

from precalc.core.etexts import build_etexts
from precalc.core.placement import build_placement_report
from precalc.web.params import get_today
from precalc.web.schemas import ETextGroupsResponse, PlacementReportResponse
from precalc.web.sessions import LoginSession, require_login

router = APIRouter(prefix="/api", tags=["reports"])


@router.get("/etexts", response_model=ETextGroupsResponse)
async def get_etexts(
    login: LoginSession = Depends(require_login),
    today: date = Depends(get_today),
) -> ETextGroupsResponse:
    """List the student's e-texts: active, expired and refunded."""
    return ETextGroupsResponse.model_validate(build_etexts(login.student_id, today))


@router.get("/placement", response_model=PlacementReportResponse)
async def get_placement(login: LoginSession = Depends(require_login)) -> PlacementReportResponse:
    """Get the student's placement report."""
    return PlacementReportResponse.model_validate(build_placement_report(login.student_id))
