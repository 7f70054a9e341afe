"""Tests for Pydantic models."""
import pytest
from datetime import datetime
from pydantic import ValidationError


class TestGoalTypes:
    """Tests for the goal type union."""

    def test_goal_status_enum_values(self):
        """Test GoalStatus enum has correct values."""
        from tandem_goals.models.goal import GoalStatus

        assert GoalStatus.ACTIVE.value == "active"
        assert GoalStatus.COMPLETED.value == "completed"
        assert GoalStatus.EXPIRED.value == "expired"

    def test_weekly_habit_requires_positive_target(self):
        from tandem_goals.models.goal import WeeklyHabit

        with pytest.raises(ValidationError):
            WeeklyHabit(target_per_week=0)

    def test_target_amount_requires_positive_total(self):
        from tandem_goals.models.goal import TargetAmount

        with pytest.raises(ValidationError):
            TargetAmount(target_total=-5)

    def test_recurring_task_rejects_targets(self):
        """Test a recurring task carries no target fields."""
        from tandem_goals.models.goal import RecurringTask

        with pytest.raises(ValidationError):
            RecurringTask(target_per_week=2)

    def test_goal_types_are_frozen(self):
        from tandem_goals.models.goal import WeeklyHabit

        habit = WeeklyHabit(target_per_week=2)
        with pytest.raises(ValidationError):
            habit.target_per_week = 5


class TestGoalCreate:
    """Tests for GoalCreate validation."""

    def test_goal_create_minimal(self):
        """Test creating a goal with minimal required fields."""
        from tandem_goals.models.goal import GoalCreate, RecurringTask

        goal = GoalCreate(name="Water plants", icon="🌱", type={"kind": "recurring_task"})

        assert goal.type == RecurringTask()
        assert goal.duration_weeks is None

    def test_goal_create_discriminates_on_kind(self):
        from tandem_goals.models.goal import GoalCreate, TargetAmount

        goal = GoalCreate(
            name="Save",
            icon="💰",
            type={"kind": "target_amount", "target_total": 500},
            duration_weeks=12,
        )

        assert goal.type == TargetAmount(target_total=500)

    def test_goal_create_unknown_kind(self):
        from tandem_goals.models.goal import GoalCreate

        with pytest.raises(ValidationError):
            GoalCreate(name="Nap", icon="😴", type={"kind": "daily"})

    def test_goal_create_name_trimmed(self):
        from tandem_goals.models.goal import GoalCreate

        goal = GoalCreate(name="  Walk  ", icon="🚶", type={"kind": "recurring_task"})

        assert goal.name == "Walk"

    @pytest.mark.parametrize("name", ["", "   ", "x" * 101])
    def test_goal_create_bad_name(self, name):
        from tandem_goals.models.goal import GoalCreate

        with pytest.raises(ValidationError):
            GoalCreate(name=name, icon="🚶", type={"kind": "recurring_task"})

    def test_goal_create_name_at_max_length(self):
        from tandem_goals.models.goal import GoalCreate

        goal = GoalCreate(name="x" * 100, icon="🚶", type={"kind": "recurring_task"})

        assert len(goal.name) == 100

    @pytest.mark.parametrize("icon", ["", "ab", "🚶🚶"])
    def test_goal_create_bad_icon(self, icon):
        from tandem_goals.models.goal import GoalCreate

        with pytest.raises(ValidationError):
            GoalCreate(name="Walk", icon=icon, type={"kind": "recurring_task"})

    @pytest.mark.parametrize("duration", [1, 6, 52])
    def test_goal_create_bad_duration(self, duration):
        from tandem_goals.models.goal import GoalCreate

        with pytest.raises(ValidationError):
            GoalCreate(
                name="Walk",
                icon="🚶",
                type={"kind": "recurring_task"},
                duration_weeks=duration,
            )

    def test_goal_update_partial(self):
        from tandem_goals.models.goal import GoalUpdate

        update = GoalUpdate(icon="🏊")

        assert update.model_dump(exclude_none=True) == {"icon": "🏊"}


class TestGoalModel:
    """Tests for the stored Goal model."""

    def test_goal_serializes_id(self):
        """Test _id is accepted on input and serialized as id."""
        from tandem_goals.models.goal import Goal

        now = datetime(2026, 1, 14)
        goal = Goal(
            _id="goal1",
            name="Run",
            icon="🏃",
            type={"kind": "weekly_habit", "target_per_week": 3},
            start_week_id="2026-W03",
            current_week_id="2026-W03",
            owner_id="user123",
            created_at=now,
            updated_at=now,
        )

        data = goal.model_dump(by_alias=True)
        assert data["id"] == "goal1"
        assert data["type"] == {"kind": "weekly_habit", "target_per_week": 3}
        assert goal.is_active

    def test_goal_rejects_bad_week(self):
        from tandem_goals.models.goal import Goal

        now = datetime(2026, 1, 14)
        with pytest.raises(ValidationError):
            Goal(
                _id="goal1",
                name="Run",
                icon="🏃",
                type={"kind": "recurring_task"},
                start_week_id="2026-3",
                current_week_id="2026-W03",
                owner_id="user123",
                created_at=now,
                updated_at=now,
            )


class TestGoalTypeCodec:
    """Tests for the flat storage encoding of goal types."""

    def test_fields_for_each_kind(self):
        from tandem_goals.models.goal import (
            RecurringTask,
            TargetAmount,
            WeeklyHabit,
            goal_type_fields,
        )

        assert goal_type_fields(WeeklyHabit(target_per_week=4)) == {
            "type": "weekly_habit",
            "target_per_week": 4,
            "target_total": None,
        }
        assert goal_type_fields(RecurringTask())["type"] == "recurring_task"
        assert goal_type_fields(TargetAmount(target_total=9))["target_total"] == 9

    @pytest.mark.parametrize(
        "type_value,per_week,total,expected",
        [
            ("WEEKLY_HABIT", 3, None, ("weekly_habit", 3)),
            ("WEEKLY_HABIT:5", None, None, ("weekly_habit", 5)),
            ("TARGET_AMOUNT:50", None, None, ("target_amount", 50)),
            ("target_amount", None, None, ("target_amount", 1)),
            ("weekly_habit", None, None, ("weekly_habit", 1)),
        ],
    )
    def test_legacy_and_missing_targets(self, type_value, per_week, total, expected):
        from tandem_goals.models.goal import goal_type_from_fields
        from tandem_goals.services.progress import target

        goal_type = goal_type_from_fields(type_value, per_week, total)

        assert (goal_type.kind, target(goal_type)) == expected

    @pytest.mark.parametrize("type_value", ["RECURRING_TASK", "SOMETHING_NEW", "", None])
    def test_recurring_and_unknown_kinds(self, type_value):
        """Test unknown discriminants read as a recurring task."""
        from tandem_goals.models.goal import RecurringTask, goal_type_from_fields

        assert goal_type_from_fields(type_value) == RecurringTask()

    def test_parse_goal_status(self):
        from tandem_goals.models.goal import GoalStatus, parse_goal_status

        assert parse_goal_status("EXPIRED") == GoalStatus.EXPIRED
        assert parse_goal_status("paused") == GoalStatus.ACTIVE
        assert parse_goal_status(None) == GoalStatus.ACTIVE


class TestGoalProgress:
    """Tests for weekly snapshots."""

    def test_progress_key(self):
        from tandem_goals.models.goal_progress import GoalProgressCreate

        record = GoalProgressCreate(
            goal_id="goal1", week_id="2026-W02", progress_value=0, target_value=1
        )

        assert record.key == ("goal1", "2026-W02")

    def test_progress_rejects_zero_target(self):
        from tandem_goals.models.goal_progress import GoalProgressCreate

        with pytest.raises(ValidationError):
            GoalProgressCreate(
                goal_id="goal1", week_id="2026-W02", progress_value=0, target_value=0
            )
