"""Task link bridge - turns task events into goal progress."""
import logging
from typing import Optional

from tandem_goals.exceptions import ForbiddenCrossOwnerLink, GoalInactive, TaskNotFound
from tandem_goals.models.goal import Goal
from tandem_goals.services.expiration import ExpirationEvaluator
from tandem_goals.services.goal_limit import GoalLimitGuard
from tandem_goals.services.goal_store import GoalStore

logger = logging.getLogger(__name__)


class TaskLinkBridge:
    """
    Connects the task subsystem to goals.

    Completing a linked task adds one to the goal. Deleting or un-completing
    a task never takes progress away.
    """

    def __init__(
        self,
        db,
        store: GoalStore,
        limit_guard: GoalLimitGuard,
        evaluator: Optional[ExpirationEvaluator] = None,
    ):
        """Initialize bridge with database connection and collaborators."""
        self.db = db
        self.tasks = db["tasks"]
        self.store = store
        self.limit_guard = limit_guard
        self.evaluator = evaluator or ExpirationEvaluator()

    async def on_task_completed(self, user_id: str, goal_id: str) -> Goal:
        """
        Record one unit of progress on a goal.

        Args:
            user_id: User who completed the task
            goal_id: Goal the task is linked to

        Returns:
            The updated goal, COMPLETED if this increment met a cumulative target

        Raises:
            GoalNotFound: If the goal does not exist
            ForbiddenPartnerMutation: If the goal belongs to someone else
            GoalInactive: If the goal is already COMPLETED or EXPIRED
        """
        goal = await self.store.get_owned_goal(user_id, goal_id)
        if not goal.is_active:
            raise GoalInactive(goal_id, goal.status.value)

        updated = await self.store.increment_progress(goal_id)
        if updated is None:
            # Went terminal between the read and the increment
            current = await self.store.get_goal(goal_id)
            status = current.status.value if current else "deleted"
            raise GoalInactive(goal_id, status)

        checked = self.evaluator.complete_if_target_met(updated)
        if checked.status != updated.status:
            completed = await self.store.transition_status(goal_id, checked.status)
            if completed is not None:
                await self.limit_guard.release(completed.owner_id)
                logger.info("Goal %s completed at %d", goal_id, completed.current_progress)
                return completed

        return updated

    def on_task_deleted(self, goal_id: Optional[str]) -> None:
        """Deleting a task keeps the progress it already earned."""
        logger.debug("Task linked to goal %s deleted; progress kept", goal_id)

    async def link_task(self, user_id: str, task_id: str, goal_id: str) -> None:
        """
        Point a task at one of the acting user's goals.

        Raises:
            GoalNotFound: If the goal does not exist
            ForbiddenCrossOwnerLink: If the goal is not the acting user's
            TaskNotFound: If the task does not exist
        """
        await self.store.get_owned_goal(user_id, goal_id, forbidden=ForbiddenCrossOwnerLink)
        await self._set_linked_goal(task_id, goal_id)

    async def unlink_task(self, user_id: str, task_id: str) -> None:
        """
        Clear a task's goal link.

        Raises:
            TaskNotFound: If the task does not exist
        """
        await self._set_linked_goal(task_id, None)
        logger.debug("User %s unlinked task %s", user_id, task_id)

    async def linked_goal(self, task_id: str) -> Optional[Goal]:
        """
        Resolve the goal a task points at.

        Returns:
            The goal, or None when the task is unlinked, missing, or points
            at a goal that has since been deleted
        """
        task_doc = await self.tasks.find_one({"_id": task_id}, {"linked_goal_id": 1})
        if not task_doc or not task_doc.get("linked_goal_id"):
            return None
        return await self.store.get_goal(task_doc["linked_goal_id"])

    async def _set_linked_goal(self, task_id: str, goal_id: Optional[str]) -> None:
        result = await self.tasks.update_one(
            {"_id": task_id},
            {"$set": {"linked_goal_id": goal_id}},
        )
        if result.matched_count == 0:
            raise TaskNotFound(task_id)
