"""Maintenance router - weekly reset and expiration runs."""
from typing import Optional

from fastapi import APIRouter, Body, Depends

from tandem_goals.models.maintenance import MaintenanceReport, MaintenanceRequest
from tandem_goals.routers.dependencies import (
    GOAL_ERRORS,
    get_current_user_id,
    get_goal_service,
    to_http_exception,
)
from tandem_goals.services.goal_service import GoalService


router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post("/weekly", response_model=MaintenanceReport)
async def run_weekly_maintenance(
    request: Optional[MaintenanceRequest] = Body(default=None),
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """
    Run weekly maintenance for the user's goals.

    - Archives and resets weekly goals that crossed a week boundary
    - Completes or expires goals whose duration has elapsed
    - Safe to call on every app start; repeated calls in a week are no-ops
    - Returns 422 for a malformed week id
    """
    week_id = request.current_week_id if request else None
    try:
        return await service.run_weekly_maintenance(owner_id=user_id, week_id=week_id)
    except GOAL_ERRORS as e:
        raise to_http_exception(e)
