"""Task link router - attaching tasks to goals."""
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from tandem_goals.models.goal import Goal
from tandem_goals.routers.dependencies import (
    GOAL_ERRORS,
    get_current_user_id,
    get_goal_service,
    to_http_exception,
)
from tandem_goals.services.goal_service import GoalService


router = APIRouter(prefix="/tasks", tags=["tasks"])


class TaskLinkRequest(BaseModel):
    """Link request model."""

    goal_id: str


@router.get("/{task_id}/goal", response_model=Optional[Goal])
async def get_linked_goal(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """The goal a task is linked to, or null when unlinked or dangling."""
    return await service.get_linked_goal(task_id)


@router.put("/{task_id}/goal", status_code=status.HTTP_204_NO_CONTENT)
async def link_task(
    task_id: str,
    link: TaskLinkRequest,
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """
    Link a task to one of the user's goals.

    - Returns 403 for a partner's goal
    - Returns 404 if the task or goal does not exist
    """
    try:
        await service.link_task(user_id=user_id, task_id=task_id, goal_id=link.goal_id)
    except GOAL_ERRORS as e:
        raise to_http_exception(e)


@router.delete("/{task_id}/goal", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
):
    """Remove a task's goal link. Progress already earned stays."""
    try:
        await service.unlink_task(user_id=user_id, task_id=task_id)
    except GOAL_ERRORS as e:
        raise to_http_exception(e)
