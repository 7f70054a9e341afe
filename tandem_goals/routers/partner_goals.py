"""Partner goal router - read-only mirror of a partner's goals.

Every route is scoped to the acting user's linked partner (``X-Partner-Id``);
asking about or feeding any other user's goals is a 403.
"""
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from tandem_goals.models.partner_goal import (
    ChangeAction,
    PartnerGoal,
    PartnerGoalRecord,
    PartnerSyncResult,
)
from tandem_goals.routers.dependencies import (
    ensure_linked_partner,
    get_goal_service,
    get_linked_partner_id,
)
from tandem_goals.services.goal_service import GoalService


router = APIRouter(prefix="/partner-goals", tags=["partner-goals"])


class MergeResponse(BaseModel):
    """Whether a merge or removal changed the cache."""

    applied: bool


class LastSyncResponse(BaseModel):
    partner_id: str
    synced_at: Optional[datetime] = None


class ChangeEvent(BaseModel):
    """One change event from the partner sync channel."""

    action: ChangeAction
    record: dict[str, Any]


@router.get("", response_model=list[PartnerGoal])
async def list_partner_goals(
    partner_id: str = Query(..., description="Partner's user ID"),
    linked_partner_id: str = Depends(get_linked_partner_id),
    service: GoalService = Depends(get_goal_service),
):
    """List a partner's cached goals."""
    ensure_linked_partner(partner_id, linked_partner_id)
    return await service.list_partner_goals(partner_id)


@router.get("/last-sync", response_model=LastSyncResponse)
async def get_last_sync(
    partner_id: str = Query(..., description="Partner's user ID"),
    linked_partner_id: str = Depends(get_linked_partner_id),
    service: GoalService = Depends(get_goal_service),
):
    """When the partner's goals were last synced, for a "last updated" hint."""
    ensure_linked_partner(partner_id, linked_partner_id)
    synced_at = await service.get_partner_goals_last_sync_time(partner_id)
    return LastSyncResponse(partner_id=partner_id, synced_at=synced_at)


@router.get("/{goal_id}", response_model=PartnerGoal)
async def get_partner_goal(
    goal_id: str,
    linked_partner_id: str = Depends(get_linked_partner_id),
    service: GoalService = Depends(get_goal_service),
):
    """
    Get one cached partner goal.

    - Returns 404 if it is not cached or belongs to someone else
    """
    goal = await service.get_partner_goal(goal_id)
    if goal is None or goal.owner_id != linked_partner_id:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


@router.put("/{goal_id}", response_model=MergeResponse)
async def merge_partner_goal(
    goal_id: str,
    record: PartnerGoalRecord,
    linked_partner_id: str = Depends(get_linked_partner_id),
    service: GoalService = Depends(get_goal_service),
):
    """
    Merge one partner goal record into the cache.

    - Older records than the cached copy are ignored (applied=false)
    - Records owned by anyone but the linked partner are rejected (403)
    """
    if record.id != goal_id:
        raise HTTPException(status_code=422, detail="Record id does not match path")
    ensure_linked_partner(record.owner_id, linked_partner_id)
    return MergeResponse(applied=await service.merge_partner_goal(record))


@router.delete("/{goal_id}", response_model=MergeResponse)
async def remove_partner_goal(
    goal_id: str,
    linked_partner_id: str = Depends(get_linked_partner_id),
    service: GoalService = Depends(get_goal_service),
):
    """Drop a partner goal from the cache."""
    goal = await service.get_partner_goal(goal_id)
    if goal is None:
        return MergeResponse(applied=False)
    ensure_linked_partner(goal.owner_id, linked_partner_id)
    return MergeResponse(applied=await service.remove_partner_goal(goal_id))


@router.post("/sync/{partner_id}", response_model=PartnerSyncResult)
async def sync_partner_goals(
    partner_id: str,
    records: list[PartnerGoalRecord],
    linked_partner_id: str = Depends(get_linked_partner_id),
    service: GoalService = Depends(get_goal_service),
):
    """Replace the partner's cached goals with a full pull."""
    ensure_linked_partner(partner_id, linked_partner_id)
    return await service.sync_partner_goals(partner_id, records)


@router.post("/events/{partner_id}", response_model=MergeResponse)
async def apply_partner_event(
    partner_id: str,
    event: ChangeEvent,
    linked_partner_id: str = Depends(get_linked_partner_id),
    service: GoalService = Depends(get_goal_service),
):
    """
    Apply a raw change event from the sync channel.

    - Undecodable records are logged and reported as applied=false
    """
    ensure_linked_partner(partner_id, linked_partner_id)
    applied = await service.apply_partner_change(partner_id, event.action, event.record)
    return MergeResponse(applied=applied)


@router.delete("", response_model=dict)
async def clear_partner_goals(
    partner_id: str = Query(..., description="Partner's user ID"),
    linked_partner_id: str = Depends(get_linked_partner_id),
    service: GoalService = Depends(get_goal_service),
):
    """Forget a partner's goals, e.g. after disconnecting."""
    ensure_linked_partner(partner_id, linked_partner_id)
    return {"deleted_count": await service.clear_partner_goals(partner_id)}
