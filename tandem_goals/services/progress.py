"""Progress arithmetic for each goal type. Pure functions, no I/O."""
from tandem_goals.models.goal import (
    Goal,
    GoalType,
    RecurringTask,
    TargetAmount,
    WeeklyHabit,
)

RECURRING_TASK_TARGET = 1


def target(goal_type: GoalType) -> int:
    """
    Target count for a goal type.

    Weekly habits use their per-week target, recurring tasks are a single
    done/not-done per week, target amounts use their lifetime total.
    """
    if isinstance(goal_type, WeeklyHabit):
        return goal_type.target_per_week
    if isinstance(goal_type, RecurringTask):
        return RECURRING_TASK_TARGET
    if isinstance(goal_type, TargetAmount):
        return goal_type.target_total
    raise TypeError(f"Unknown goal type: {goal_type!r}")


def fraction(progress: int, target_value: int) -> float:
    """Progress as a fraction of target. Not clamped: 7/5 is 1.4."""
    return progress / target_value


def has_met_target(progress: int, target_value: int) -> bool:
    return progress >= target_value


def progress_text(progress: int, target_value: int) -> str:
    """Display text such as "3/5"."""
    return f"{progress}/{target_value}"


def resets_weekly(goal_type: GoalType) -> bool:
    """Weekly habits and recurring tasks count per week; target amounts accumulate."""
    return isinstance(goal_type, (WeeklyHabit, RecurringTask))


def has_cumulative_target(goal_type: GoalType) -> bool:
    return isinstance(goal_type, TargetAmount)


def goal_target(goal: Goal) -> int:
    return target(goal.type)


def goal_fraction(goal: Goal) -> float:
    return fraction(goal.current_progress, goal_target(goal))


def goal_progress_text(goal: Goal) -> str:
    return progress_text(goal.current_progress, goal_target(goal))


def goal_has_met_target(goal: Goal) -> bool:
    return has_met_target(goal.current_progress, goal_target(goal))
