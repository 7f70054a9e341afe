"""Goal model definitions."""
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tandem_goals.utils.emoji import is_single_emoji
from tandem_goals.utils.week import validate_week_id

MAX_NAME_LENGTH = 100
DURATION_CHOICES = (4, 8, 12)


class GoalStatus(str, Enum):
    """Goal lifecycle states. COMPLETED and EXPIRED are terminal."""

    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


class GoalTypeKind(str, Enum):
    """Discriminant values of the goal type union."""

    WEEKLY_HABIT = "weekly_habit"
    RECURRING_TASK = "recurring_task"
    TARGET_AMOUNT = "target_amount"


class WeeklyHabit(BaseModel):
    """Do something N times a week; the counter resets every week."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["weekly_habit"] = "weekly_habit"
    target_per_week: int = Field(ge=1)


class RecurringTask(BaseModel):
    """Done / not done once a week."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["recurring_task"] = "recurring_task"


class TargetAmount(BaseModel):
    """One cumulative lifetime target."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["target_amount"] = "target_amount"
    target_total: int = Field(ge=1)


GoalType = Annotated[
    Union[WeeklyHabit, RecurringTask, TargetAmount],
    Field(discriminator="kind"),
]

DurationWeeks = Optional[Literal[4, 8, 12]]


def _clean_name(value: str) -> str:
    name = value.strip()
    if not name:
        raise ValueError("Goal name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"Goal name cannot exceed {MAX_NAME_LENGTH} characters")
    return name


def _clean_icon(value: str) -> str:
    if not is_single_emoji(value):
        raise ValueError("Goal icon must be a single emoji")
    return value


class GoalCreate(BaseModel):
    """Goal creation model."""

    name: str
    icon: str
    type: GoalType
    duration_weeks: DurationWeeks = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _clean_name(value)

    @field_validator("icon")
    @classmethod
    def validate_icon(cls, value: str) -> str:
        return _clean_icon(value)


class GoalUpdate(BaseModel):
    """
    Goal update model.

    Only name and icon are editable; type, duration and start week are fixed
    at creation.
    """

    name: Optional[str] = None
    icon: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _clean_name(value)

    @field_validator("icon")
    @classmethod
    def validate_icon(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _clean_icon(value)


class Goal(BaseModel):
    """Full goal model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    name: str
    icon: str
    type: GoalType
    duration_weeks: DurationWeeks = None
    start_week_id: str
    current_week_id: str
    owner_id: str
    current_progress: int = Field(default=0, ge=0)
    status: GoalStatus = GoalStatus.ACTIVE
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}

    @field_validator("start_week_id", "current_week_id")
    @classmethod
    def validate_week_ids(cls, value: str) -> str:
        return validate_week_id(value)

    @property
    def is_active(self) -> bool:
        return self.status == GoalStatus.ACTIVE


# Storage codec: goals are stored with a flat type string plus nullable
# target columns, the same shape the partner sync channel delivers.

def goal_type_fields(goal_type: GoalType) -> dict:
    """Flatten a goal type into ``type`` / ``target_per_week`` / ``target_total``."""
    if isinstance(goal_type, WeeklyHabit):
        return {
            "type": GoalTypeKind.WEEKLY_HABIT.value,
            "target_per_week": goal_type.target_per_week,
            "target_total": None,
        }
    if isinstance(goal_type, RecurringTask):
        return {
            "type": GoalTypeKind.RECURRING_TASK.value,
            "target_per_week": None,
            "target_total": None,
        }
    if isinstance(goal_type, TargetAmount):
        return {
            "type": GoalTypeKind.TARGET_AMOUNT.value,
            "target_per_week": None,
            "target_total": goal_type.target_total,
        }
    raise TypeError(f"Unknown goal type: {goal_type!r}")


def _parse_target(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


def goal_type_from_fields(
    type_value: str,
    target_per_week: Optional[int] = None,
    target_total: Optional[int] = None,
) -> GoalType:
    """
    Rebuild a goal type from its stored fields.

    Accepts the current lowercase discriminants, their uppercase forms, and
    the compact legacy encodings ``WEEKLY_HABIT:3`` / ``TARGET_AMOUNT:50``.
    A missing target defaults to 1; an unknown discriminant reads as a
    recurring task.
    """
    kind, _, inline_target = (type_value or "").partition(":")
    kind = kind.strip().lower()
    inline = _parse_target(inline_target) if inline_target else None

    if kind == GoalTypeKind.WEEKLY_HABIT.value:
        return WeeklyHabit(target_per_week=max(target_per_week or inline or 1, 1))
    if kind == GoalTypeKind.TARGET_AMOUNT.value:
        return TargetAmount(target_total=max(target_total or inline or 1, 1))
    return RecurringTask()


def parse_goal_status(value: Optional[str]) -> GoalStatus:
    """Decode a stored status string; unknown values read as ACTIVE."""
    try:
        return GoalStatus((value or "").lower())
    except ValueError:
        return GoalStatus.ACTIVE
