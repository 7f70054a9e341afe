"""Expiration evaluator - moves ACTIVE goals to COMPLETED or EXPIRED."""
import logging
from typing import Iterable, Optional

from tandem_goals.models.goal import Goal, GoalStatus
from tandem_goals.services.progress import goal_has_met_target, has_cumulative_target
from tandem_goals.utils.week import end_week_id, is_after, validate_week_id

logger = logging.getLogger(__name__)


def window_end_week_id(goal: Goal) -> Optional[str]:
    """Last week of the goal's duration window, or None for ongoing goals."""
    if goal.duration_weeks is None:
        return None
    return end_week_id(goal.start_week_id, goal.duration_weeks)


def window_closed(goal: Goal, current_week_id: str) -> bool:
    """True once current_week_id is past the last week of the goal's window."""
    end = window_end_week_id(goal)
    return end is not None and is_after(current_week_id, end)


class ExpirationEvaluator:
    """
    Decides terminal transitions for goals.

    Rules, in order:
        1. Only ACTIVE goals are candidates; terminal goals never change.
        2. A goal with a cumulative target that has met it is COMPLETED,
           with or without a duration.
        3. A goal whose duration window has fully elapsed is COMPLETED when
           its target is met and EXPIRED otherwise.

    Rule 2 runs before rule 3, so hitting the target in the closing week
    always completes the goal.
    """

    def next_status(self, goal: Goal, current_week_id: str) -> Optional[GoalStatus]:
        """Status the goal should move to, or None if it stays as it is."""
        if not goal.is_active:
            return None

        met = goal_has_met_target(goal)
        if met and has_cumulative_target(goal.type):
            return GoalStatus.COMPLETED

        if window_closed(goal, current_week_id):
            return GoalStatus.COMPLETED if met else GoalStatus.EXPIRED

        return None

    def evaluate(self, goals: Iterable[Goal], current_week_id: str) -> list[Goal]:
        """
        Apply terminal transitions to a batch of goals.

        Args:
            goals: Goals to evaluate (any status)
            current_week_id: Week the evaluation happens in

        Returns:
            The same goals, in order, with transitions applied
        """
        validate_week_id(current_week_id)
        evaluated = []
        for goal in goals:
            status = self.next_status(goal, current_week_id)
            if status is not None:
                logger.debug("Goal %s: %s -> %s", goal.id, goal.status.value, status.value)
                goal = goal.model_copy(update={"status": status})
            evaluated.append(goal)
        return evaluated

    def transitions(self, goals: Iterable[Goal], current_week_id: str) -> list[Goal]:
        """Like evaluate, but return only the goals whose status changed."""
        goals = list(goals)
        evaluated = self.evaluate(goals, current_week_id)
        return [
            after
            for before, after in zip(goals, evaluated)
            if after.status != before.status
        ]

    def complete_if_target_met(self, goal: Goal) -> Goal:
        """
        Early completion check run after each progress increment.

        Only cumulative targets end a goal early; a weekly quota being met
        does not finish a weekly habit.
        """
        if (
            goal.is_active
            and has_cumulative_target(goal.type)
            and goal_has_met_target(goal)
        ):
            return goal.model_copy(update={"status": GoalStatus.COMPLETED})
        return goal
