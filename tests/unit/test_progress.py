"""Tests for progress arithmetic."""
import pytest

from tandem_goals.models.goal import RecurringTask, TargetAmount, WeeklyHabit
from tandem_goals.services.progress import (
    fraction,
    goal_fraction,
    goal_has_met_target,
    goal_progress_text,
    goal_target,
    has_cumulative_target,
    has_met_target,
    progress_text,
    resets_weekly,
    target,
)


class TestTarget:
    """Tests for per-type targets."""

    def test_weekly_habit_uses_target_per_week(self):
        assert target(WeeklyHabit(target_per_week=3)) == 3

    def test_recurring_task_target_is_one(self):
        assert target(RecurringTask()) == 1

    def test_target_amount_uses_total(self):
        assert target(TargetAmount(target_total=50)) == 50

    def test_unknown_type_rejected(self):
        with pytest.raises(TypeError):
            target("weekly_habit")


class TestFraction:
    """Tests for fractions and target checks."""

    def test_fraction_is_unclamped(self):
        """Test overshooting the target gives a value above 1."""
        assert fraction(7, 5) == pytest.approx(1.4)

    def test_fraction_partial(self):
        assert fraction(1, 4) == pytest.approx(0.25)

    def test_has_met_target_boundary(self):
        assert has_met_target(3, 3)
        assert has_met_target(4, 3)
        assert not has_met_target(2, 3)

    def test_progress_text(self):
        assert progress_text(3, 5) == "3/5"


class TestGoalHelpers:
    """Tests for helpers that read straight off a goal."""

    def test_goal_helpers(self, make_goal):
        goal = make_goal(type="target_amount", target_total=100, current_progress=75)

        assert goal_target(goal) == 100
        assert goal_fraction(goal) == pytest.approx(0.75)
        assert goal_progress_text(goal) == "75/100"
        assert not goal_has_met_target(goal)

    def test_resets_weekly(self):
        assert resets_weekly(WeeklyHabit(target_per_week=2))
        assert resets_weekly(RecurringTask())
        assert not resets_weekly(TargetAmount(target_total=10))

    def test_has_cumulative_target(self):
        assert has_cumulative_target(TargetAmount(target_total=10))
        assert not has_cumulative_target(WeeklyHabit(target_per_week=2))
