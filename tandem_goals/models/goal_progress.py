"""Weekly goal progress snapshots."""
from datetime import datetime

from pydantic import BaseModel, Field


class GoalProgressCreate(BaseModel):
    """Snapshot produced when a week is archived, before it is stored."""

    goal_id: str
    week_id: str
    progress_value: int = Field(ge=0)
    target_value: int = Field(ge=1)

    @property
    def key(self) -> tuple[str, str]:
        return (self.goal_id, self.week_id)


class GoalProgress(GoalProgressCreate):
    """
    Stored snapshot of one goal's progress in one ISO week.

    Unique per (goal_id, week_id). The value is rewritten only when a task
    completion lands between archiving a week and zeroing its counter.
    """

    id: str = Field(alias="_id", serialization_alias="id")
    created_at: datetime

    model_config = {"populate_by_name": True}
