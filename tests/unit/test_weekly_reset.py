"""Tests for WeeklyResetEngine."""
import pytest

from tandem_goals.exceptions import InvalidWeekId
from tandem_goals.models.goal import GoalStatus
from tandem_goals.services.weekly_reset import WeeklyResetEngine


class TestWeeklyResetEngine:
    """Tests for archiving and resetting weekly goals."""

    def test_weekly_habit_crossing_one_boundary(self, make_goal):
        """Test a weekly habit is archived and zeroed in the next week."""
        goal = make_goal(current_progress=2, current_week_id="2026-W01")

        result = WeeklyResetEngine().process([goal], "2026-W02")

        assert len(result.new_progress_records) == 1
        record = result.new_progress_records[0]
        assert record.goal_id == goal.id
        assert record.week_id == "2026-W01"
        assert record.progress_value == 2
        assert record.target_value == 3

        assert len(result.updated_goals) == 1
        updated = result.updated_goals[0]
        assert updated.current_progress == 0
        assert updated.current_week_id == "2026-W02"

    def test_same_week_is_noop(self, make_goal):
        """Test nothing happens when the goal is already in the current week."""
        goal = make_goal(current_progress=2, current_week_id="2026-W02")

        result = WeeklyResetEngine().process([goal], "2026-W02")

        assert result.new_progress_records == []
        assert result.updated_goals == []

    def test_running_twice_is_idempotent(self, make_goal):
        """Test applying the first run's output then running again changes nothing."""
        engine = WeeklyResetEngine()
        goal = make_goal(current_progress=2, current_week_id="2026-W01")

        first = engine.process([goal], "2026-W02")
        archived = [record.key for record in first.new_progress_records]
        second = engine.process(first.updated_goals, "2026-W02", archived)

        assert second.new_progress_records == []
        assert second.updated_goals == []

    def test_existing_snapshot_not_archived_again(self, make_goal):
        """Test a partial earlier run that archived but did not reset."""
        goal = make_goal(current_progress=2, current_week_id="2026-W01")

        result = WeeklyResetEngine().process(
            [goal], "2026-W02", archived_keys=[(goal.id, "2026-W01")]
        )

        assert result.new_progress_records == []
        assert result.updated_goals[0].current_progress == 0

    def test_recurring_task_resets(self, make_goal):
        """Test recurring tasks archive with a target of 1."""
        goal = make_goal(type="recurring_task", target_per_week=None, current_progress=1)

        result = WeeklyResetEngine().process([goal], "2026-W02")

        assert result.new_progress_records[0].target_value == 1
        assert result.updated_goals[0].current_progress == 0

    def test_target_amount_never_resets(self, make_goal):
        """Test cumulative goals are skipped."""
        goal = make_goal(
            type="target_amount", target_per_week=None, target_total=50, current_progress=20
        )

        result = WeeklyResetEngine().process([goal], "2026-W05")

        assert result.new_progress_records == []
        assert result.updated_goals == []

    @pytest.mark.parametrize("status", ["completed", "expired"])
    def test_terminal_goals_skipped(self, make_goal, status):
        """Test completed and expired goals are left alone."""
        goal = make_goal(status=status, current_progress=2)

        result = WeeklyResetEngine().process([goal], "2026-W02")

        assert result.new_progress_records == []
        assert result.updated_goals == []

    def test_multiple_missed_weeks_archive_last_week_only(self, make_goal):
        """Test an offline gap archives only the week the goal was counting in."""
        goal = make_goal(current_progress=1, current_week_id="2026-W01")

        result = WeeklyResetEngine().process([goal], "2026-W05")

        assert [r.week_id for r in result.new_progress_records] == ["2026-W01"]
        assert result.updated_goals[0].current_week_id == "2026-W05"

    def test_reset_across_year_boundary(self, make_goal):
        """Test a goal in week 53 rolls into week 1 of the next year."""
        goal = make_goal(
            start_week_id="2026-W50", current_week_id="2026-W53", current_progress=3
        )

        result = WeeklyResetEngine().process([goal], "2027-W01")

        assert result.new_progress_records[0].week_id == "2026-W53"
        assert result.updated_goals[0].current_week_id == "2027-W01"

    def test_closed_window_still_zeroed(self, make_goal):
        """Test a goal past its window is archived and zeroed like any other."""
        goal = make_goal(
            duration_weeks=4,
            start_week_id="2026-W01",
            current_week_id="2026-W04",
            current_progress=3,
        )

        result = WeeklyResetEngine().process([goal], "2026-W05")

        assert result.new_progress_records[0].week_id == "2026-W04"
        assert result.new_progress_records[0].progress_value == 3
        updated = result.updated_goals[0]
        assert updated.current_week_id == "2026-W05"
        assert updated.current_progress == 0

    def test_goal_ahead_of_current_week_skipped(self, make_goal):
        """Test a clock moving backwards never archives or resets."""
        goal = make_goal(current_week_id="2026-W05", current_progress=2)

        result = WeeklyResetEngine().process([goal], "2026-W04")

        assert result.new_progress_records == []
        assert result.updated_goals == []

    def test_input_goals_not_mutated(self, make_goal):
        """Test the engine returns copies."""
        goal = make_goal(current_progress=2)

        WeeklyResetEngine().process([goal], "2026-W02")

        assert goal.current_progress == 2
        assert goal.current_week_id == "2026-W01"
        assert goal.status == GoalStatus.ACTIVE

    def test_invalid_week_rejected(self, make_goal):
        with pytest.raises(InvalidWeekId):
            WeeklyResetEngine().process([make_goal()], "2026-W2")
