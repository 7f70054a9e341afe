"""Weekly reset engine - archives the outgoing week and zeroes weekly counters."""
import logging
from typing import Iterable

from pydantic import BaseModel, Field

from tandem_goals.models.goal import Goal
from tandem_goals.models.goal_progress import GoalProgressCreate
from tandem_goals.services.progress import goal_target, resets_weekly
from tandem_goals.utils.week import compare_week_ids, validate_week_id

logger = logging.getLogger(__name__)


def snapshot(goal: Goal) -> GoalProgressCreate:
    """Progress snapshot of the week goal is currently counting in."""
    return GoalProgressCreate(
        goal_id=goal.id,
        week_id=goal.current_week_id,
        progress_value=goal.current_progress,
        target_value=goal_target(goal),
    )


class WeeklyResetResult(BaseModel):
    """Goals changed by a reset pass and the snapshots to archive."""

    updated_goals: list[Goal] = Field(default_factory=list)
    new_progress_records: list[GoalProgressCreate] = Field(default_factory=list)


class WeeklyResetEngine:
    """
    Rolls weekly habit and recurring task goals into a new ISO week.

    For every ACTIVE weekly goal whose current_week_id is behind the current
    week, the outgoing week is archived as a GoalProgress snapshot and the
    counter restarts at zero. Running twice in the same week changes nothing.

    When several week boundaries were missed (device offline), only the week
    the goal was last counting in is archived, with its final value; the
    skipped weeks get no snapshot.

    Goals whose duration window has closed are zeroed like any other, so the
    expiration step that follows sees the new week's counter.
    """

    def process(
        self,
        goals: Iterable[Goal],
        current_week_id: str,
        archived_keys: Iterable[tuple[str, str]] = (),
    ) -> WeeklyResetResult:
        """
        Compute resets for a batch of goals.

        Args:
            goals: Candidate goals; non-active and target amount goals are skipped
            current_week_id: Week being entered
            archived_keys: (goal_id, week_id) pairs that already have a snapshot

        Returns:
            WeeklyResetResult with the reset goals and snapshots to store
        """
        validate_week_id(current_week_id)
        seen = set(archived_keys)
        result = WeeklyResetResult()

        for goal in goals:
            if not goal.is_active or not resets_weekly(goal.type):
                continue

            order = compare_week_ids(goal.current_week_id, current_week_id)
            if order == 0:
                continue
            if order > 0:
                logger.warning(
                    "Goal %s is counting in %s, ahead of %s; skipping reset",
                    goal.id,
                    goal.current_week_id,
                    current_week_id,
                )
                continue

            key = (goal.id, goal.current_week_id)
            if key not in seen:
                seen.add(key)
                result.new_progress_records.append(snapshot(goal))

            result.updated_goals.append(
                goal.model_copy(
                    update={"current_progress": 0, "current_week_id": current_week_id}
                )
            )

        return result
