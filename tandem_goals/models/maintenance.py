"""Weekly maintenance request and report models."""
from typing import Optional

from pydantic import BaseModel, Field


class MaintenanceRequest(BaseModel):
    """Maintenance run parameters; the week defaults to the clock's week."""

    current_week_id: Optional[str] = None


class MaintenanceReport(BaseModel):
    """What a weekly maintenance run changed."""

    owner_id: str
    current_week_id: str
    reset_goal_ids: list[str] = Field(default_factory=list)
    archived_weeks: list[tuple[str, str]] = Field(default_factory=list)
    completed_goal_ids: list[str] = Field(default_factory=list)
    expired_goal_ids: list[str] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(
            self.reset_goal_ids
            or self.archived_weeks
            or self.completed_goal_ids
            or self.expired_goal_ids
        )
