"""Partner goal cache models."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tandem_goals.models.goal import (
    DurationWeeks,
    Goal,
    goal_type_from_fields,
    parse_goal_status,
)
from tandem_goals.utils.week import validate_week_id


class ChangeAction(str, Enum):
    """Kinds of change events delivered by the partner sync channel."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class PartnerGoalRecord(BaseModel):
    """
    A partner's goal as delivered by the sync channel.

    Flat shape: the goal type is a discriminant string with nullable target
    columns. ``synced_at`` is stamped when the record was fetched; together
    with ``updated_at`` it orders competing writes for the same id.
    """

    id: str
    name: str
    icon: str
    type: str
    target_per_week: Optional[int] = None
    target_total: Optional[int] = None
    duration_weeks: DurationWeeks = None
    start_week_id: str
    current_week_id: str
    owner_id: str
    current_progress: int = Field(default=0, ge=0)
    status: str = "active"
    created_at: datetime
    updated_at: datetime
    synced_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("start_week_id", "current_week_id")
    @classmethod
    def validate_week_ids(cls, value: str) -> str:
        return validate_week_id(value)

    def to_document(self) -> dict:
        """Cache document for this record, keyed by the remote goal id."""
        goal_type = goal_type_from_fields(
            self.type, self.target_per_week, self.target_total
        )
        return {
            "_id": self.id,
            "name": self.name,
            "icon": self.icon,
            "type": goal_type.kind,
            "target_per_week": getattr(goal_type, "target_per_week", None),
            "target_total": getattr(goal_type, "target_total", None),
            "duration_weeks": self.duration_weeks,
            "start_week_id": self.start_week_id,
            "current_week_id": self.current_week_id,
            "owner_id": self.owner_id,
            "current_progress": self.current_progress,
            "status": parse_goal_status(self.status).value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "synced_at": self.synced_at,
        }


class PartnerGoal(Goal):
    """Read-only mirror of a partner's goal."""

    synced_at: datetime


class PartnerSyncResult(BaseModel):
    """Outcome of a full partner goal pull."""

    partner_id: str
    upserted: int = 0
    stale: int = 0
    removed: int = 0
