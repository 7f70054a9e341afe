"""Goal router - API endpoints for goal management and progress."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from tandem_goals.models.goal import Goal, GoalCreate, GoalStatus, GoalUpdate
from tandem_goals.models.goal_progress import GoalProgress
from tandem_goals.routers.dependencies import (
    GOAL_ERRORS,
    get_current_user_id,
    get_goal_service,
    to_http_exception,
)
from tandem_goals.services.goal_service import GoalService


router = APIRouter(prefix="/goals", tags=["goals"])


class ActiveCountResponse(BaseModel):
    count: int


@router.post("", response_model=Goal, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal: GoalCreate,
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """
    Create a new goal.

    - Starts ACTIVE in the current ISO week with zero progress
    - Returns 409 when the user already has the maximum active goals
    """
    try:
        return await service.create_goal(user_id=user_id, goal_create=goal)
    except GOAL_ERRORS as e:
        raise to_http_exception(e)


@router.get("", response_model=list[Goal])
async def list_goals(
    goal_status: Optional[GoalStatus] = Query(
        None, alias="status", description="Filter by status (active, completed, expired)"
    ),
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """List the authenticated user's goals."""
    return await service.list_goals(user_id=user_id, status=goal_status)


@router.get("/suggestions", response_model=list[Goal])
async def list_goal_suggestions(
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """Active goals that still need progress, for weekly planning."""
    return await service.get_active_goals_for_suggestions(user_id=user_id)


@router.get("/active-count", response_model=ActiveCountResponse)
async def get_active_goal_count(
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """How many of the user's goals are ACTIVE, for showing the remaining slots."""
    return ActiveCountResponse(count=await service.get_active_goal_count(user_id=user_id))


@router.get("/{goal_id}", response_model=Goal)
async def get_goal(
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """
    Get a single goal.

    - Returns 404 if the goal does not exist or is not the user's
    """
    goal = await service.get_goal(user_id=user_id, goal_id=goal_id)
    if goal is None:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


@router.patch("/{goal_id}", response_model=Goal)
async def update_goal(
    goal_id: str,
    goal_update: GoalUpdate,
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """
    Update a goal's name or icon.

    - Returns 404 if goal not found
    - Returns 403 for goals owned by someone else
    - Returns 409 for completed or expired goals
    """
    try:
        return await service.update_goal(
            user_id=user_id,
            goal_id=goal_id,
            goal_update=goal_update,
        )
    except GOAL_ERRORS as e:
        raise to_http_exception(e)


@router.delete("/{goal_id}")
async def delete_goal(
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """
    Delete a goal and its progress history.

    - Linked tasks are not touched
    - Returns 404 if goal not found
    """
    try:
        deleted = await service.delete_goal(user_id=user_id, goal_id=goal_id)
    except GOAL_ERRORS as e:
        raise to_http_exception(e)

    if not deleted:
        raise HTTPException(status_code=404, detail="Goal not found")
    return {"deleted": True}


@router.get("/{goal_id}/progress", response_model=list[GoalProgress])
async def get_progress_history(
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """Weekly progress snapshots for a goal, oldest first."""
    return await service.get_progress_history(user_id=user_id, goal_id=goal_id)


@router.post("/{goal_id}/task-completed", response_model=Goal)
async def task_completed(
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """
    Record a completed linked task.

    - Adds one to the goal's progress
    - Returns 409 if the goal is completed or expired
    """
    try:
        return await service.on_task_completed(user_id=user_id, goal_id=goal_id)
    except GOAL_ERRORS as e:
        raise to_http_exception(e)


@router.post("/{goal_id}/task-deleted", status_code=status.HTTP_204_NO_CONTENT)
async def task_deleted(
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """Acknowledge a deleted linked task. Progress is never taken back."""
    service.on_task_deleted(goal_id)
