"""Goal service - the goal engine's command and query surface."""
import logging
from typing import Any, Iterable, Optional

from tandem_goals.exceptions import GoalInactive, GoalNotFound
from tandem_goals.models.goal import Goal, GoalCreate, GoalStatus, GoalUpdate
from tandem_goals.models.goal_progress import GoalProgress, GoalProgressCreate
from tandem_goals.models.maintenance import MaintenanceReport
from tandem_goals.models.partner_goal import (
    ChangeAction,
    PartnerGoal,
    PartnerGoalRecord,
    PartnerSyncResult,
)
from tandem_goals.services.expiration import ExpirationEvaluator
from tandem_goals.services.goal_limit import MAX_ACTIVE_GOALS, GoalLimitGuard
from tandem_goals.services.goal_store import GoalStore
from tandem_goals.services.partner_goal_cache import PartnerGoalCache
from tandem_goals.services.progress import goal_has_met_target, resets_weekly
from tandem_goals.services.task_link import TaskLinkBridge
from tandem_goals.services.weekly_reset import WeeklyResetEngine, snapshot
from tandem_goals.utils.clock import Clock, SystemClock
from tandem_goals.utils.week import current_week_id, validate_week_id

logger = logging.getLogger(__name__)

MAX_RESET_ATTEMPTS = 5


class GoalService:
    """Service for handling goal operations."""

    def __init__(
        self,
        db,
        clock: Optional[Clock] = None,
        max_active_goals: int = MAX_ACTIVE_GOALS,
    ):
        """Initialize service with database connection."""
        self.db = db
        self.clock = clock or SystemClock()
        self.store = GoalStore(db, self.clock)
        self.limit_guard = GoalLimitGuard(db, max_active_goals)
        self.reset_engine = WeeklyResetEngine()
        self.evaluator = ExpirationEvaluator()
        self.task_links = TaskLinkBridge(db, self.store, self.limit_guard, self.evaluator)
        self.partner_goals = PartnerGoalCache(db)

    # Own goals

    async def create_goal(self, user_id: str, goal_create: GoalCreate) -> Goal:
        """
        Create a new goal starting in the current week.

        Args:
            user_id: User ID who owns the goal
            goal_create: Validated goal creation data

        Returns:
            Created goal object

        Raises:
            LimitExceeded: If the user already has the maximum ACTIVE goals
        """
        week_id = current_week_id(self.clock)

        async def insert() -> Goal:
            return await self.store.insert_goal(user_id, goal_create, week_id)

        goal = await self.limit_guard.create(user_id, insert)
        logger.info("User %s created goal %s (%s)", user_id, goal.id, goal.type.kind)
        return goal

    async def get_goal(self, user_id: str, goal_id: str) -> Optional[Goal]:
        """Get one of the user's goals, or None."""
        goal = await self.store.get_goal(goal_id)
        if goal is None or goal.owner_id != user_id:
            return None
        return goal

    async def list_goals(
        self,
        user_id: str,
        status: Optional[GoalStatus] = None,
    ) -> list[Goal]:
        return await self.store.list_goals(user_id, status=status)

    async def get_goals_by_ids(self, user_id: str, goal_ids: Iterable[str]) -> dict[str, Goal]:
        """
        Look up several goals, e.g. for task goal badges.

        Ids that are unknown, deleted or owned by someone else are left out,
        so a dangling task link simply has no entry.
        """
        goals = await self.store.get_goals_by_ids(goal_ids)
        return {goal_id: goal for goal_id, goal in goals.items() if goal.owner_id == user_id}

    async def get_active_goal_count(self, user_id: str) -> int:
        return await self.store.count_active_goals(user_id)

    async def get_active_goals_for_suggestions(self, user_id: str) -> list[Goal]:
        """ACTIVE goals that have not met their target yet, for planning suggestions."""
        goals = await self.store.list_goals(user_id, status=GoalStatus.ACTIVE)
        return [goal for goal in goals if not goal_has_met_target(goal)]

    async def get_progress_history(self, user_id: str, goal_id: str) -> list[GoalProgress]:
        """Weekly snapshots for one of the user's goals; empty if not theirs."""
        goal = await self.get_goal(user_id, goal_id)
        if goal is None:
            return []
        return await self.store.list_progress(goal_id)

    async def update_goal(
        self,
        user_id: str,
        goal_id: str,
        goal_update: GoalUpdate,
    ) -> Goal:
        """
        Rename a goal or change its icon.

        Raises:
            GoalNotFound: If the goal does not exist
            ForbiddenPartnerMutation: If the goal is not the user's
            GoalInactive: If the goal is already COMPLETED or EXPIRED
        """
        goal = await self.store.get_owned_goal(user_id, goal_id)
        if not goal.is_active:
            raise GoalInactive(goal_id, goal.status.value)

        fields = goal_update.model_dump(exclude_none=True)
        if not fields:
            return goal

        updated = await self.store.update_goal_fields(goal_id, fields)
        if updated is None:
            raise GoalNotFound(goal_id)
        return updated

    async def delete_goal(self, user_id: str, goal_id: str) -> bool:
        """
        Delete one of the user's goals along with its progress history.

        Tasks linked to the goal keep their now dangling link.

        Returns:
            True if a goal was deleted, False if there was none

        Raises:
            ForbiddenPartnerMutation: If the goal is not the user's
        """
        try:
            goal = await self.store.get_owned_goal(user_id, goal_id)
        except GoalNotFound:
            return False

        deleted = await self.store.delete_goal(goal.id)
        if deleted is None:
            return False

        if deleted.status == GoalStatus.ACTIVE:
            await self.limit_guard.release(user_id)
        logger.info("User %s deleted goal %s", user_id, goal_id)
        return True

    # Task events

    async def on_task_completed(self, user_id: str, goal_id: str) -> Goal:
        return await self.task_links.on_task_completed(user_id, goal_id)

    def on_task_deleted(self, goal_id: Optional[str]) -> None:
        self.task_links.on_task_deleted(goal_id)

    async def link_task(self, user_id: str, task_id: str, goal_id: str) -> None:
        await self.task_links.link_task(user_id, task_id, goal_id)

    async def unlink_task(self, user_id: str, task_id: str) -> None:
        await self.task_links.unlink_task(user_id, task_id)

    async def get_linked_goal(self, task_id: str) -> Optional[Goal]:
        return await self.task_links.linked_goal(task_id)

    # Maintenance

    async def run_weekly_maintenance(
        self,
        owner_id: str,
        week_id: Optional[str] = None,
    ) -> MaintenanceReport:
        """
        Roll the owner's goals into the current week, then expire or complete them.

        Meant to run on every session start or resume. A second run in the
        same week finds nothing to do.

        Args:
            owner_id: Owner whose goals to maintain
            week_id: Week to maintain for; defaults to the clock's week

        Returns:
            MaintenanceReport listing resets, archived weeks and transitions

        Raises:
            InvalidWeekId: If week_id is malformed
        """
        week_id = validate_week_id(week_id) if week_id else current_week_id(self.clock)
        report = MaintenanceReport(owner_id=owner_id, current_week_id=week_id)

        active = await self.store.list_goals(owner_id, status=GoalStatus.ACTIVE)

        # Weekly resets
        outgoing = [
            (goal.id, goal.current_week_id)
            for goal in active
            if resets_weekly(goal.type) and goal.current_week_id != week_id
        ]
        archived = await self.store.archived_keys(outgoing)
        reset = self.reset_engine.process(active, week_id, archived)

        before_reset = {goal.id: goal for goal in active}
        records = {record.goal_id: record for record in reset.new_progress_records}
        for goal in reset.updated_goals:
            if await self._reset_goal(before_reset[goal.id], goal, records.get(goal.id), report):
                report.reset_goal_ids.append(goal.id)

        # Expirations, judged on the post-reset state
        after_reset = {goal.id: goal for goal in reset.updated_goals}
        current = [after_reset.get(goal.id, goal) for goal in active]

        for goal in self.evaluator.transitions(current, week_id):
            transitioned = await self.store.transition_status(goal.id, goal.status)
            if transitioned is None:
                continue
            await self.limit_guard.release(owner_id)
            if transitioned.status == GoalStatus.COMPLETED:
                report.completed_goal_ids.append(goal.id)
            else:
                report.expired_goal_ids.append(goal.id)

        if report.changed:
            logger.info(
                "Weekly maintenance for %s in %s: %d reset, %d archived, "
                "%d completed, %d expired",
                owner_id,
                week_id,
                len(report.reset_goal_ids),
                len(report.archived_weeks),
                len(report.completed_goal_ids),
                len(report.expired_goal_ids),
            )
        return report

    async def _reset_goal(
        self,
        before: Goal,
        after: Goal,
        record: Optional[GoalProgressCreate],
        report: MaintenanceReport,
    ) -> bool:
        """
        Archive before's week and zero its counter.

        When a task completion lands between the two writes the reset misses;
        the goal is re-read and its snapshot rewritten with the new count
        before trying again.
        """
        week_id = before.current_week_id
        for _ in range(MAX_RESET_ATTEMPTS):
            if record is not None and await self.store.archive_progress(record):
                report.archived_weeks.append(record.key)

            if await self.store.apply_weekly_reset(after, week_id, before.current_progress):
                return True

            before = await self.store.get_goal(before.id)
            if before is None or not before.is_active or before.current_week_id != week_id:
                # Another run reset it, or it was deleted or closed meanwhile
                return False
            record = snapshot(before)

        logger.warning(
            "Gave up resetting goal %s after %d attempts", after.id, MAX_RESET_ATTEMPTS
        )
        return False

    # Partner goals (read-only mirror)

    async def merge_partner_goal(self, record: PartnerGoalRecord) -> bool:
        return await self.partner_goals.upsert(record)

    async def remove_partner_goal(self, goal_id: str) -> bool:
        return await self.partner_goals.remove(goal_id)

    async def apply_partner_change(
        self,
        partner_id: str,
        action: ChangeAction,
        payload: dict[str, Any],
    ) -> bool:
        return await self.partner_goals.apply_change(partner_id, action, payload)

    async def sync_partner_goals(
        self,
        partner_id: str,
        records: Iterable[PartnerGoalRecord],
    ) -> PartnerSyncResult:
        result = await self.partner_goals.replace_all(partner_id, records)
        logger.info(
            "Synced partner %s goals: %d upserted, %d stale, %d removed",
            partner_id,
            result.upserted,
            result.stale,
            result.removed,
        )
        return result

    async def clear_partner_goals(self, partner_id: str) -> int:
        return await self.partner_goals.clear(partner_id)

    async def list_partner_goals(self, partner_id: str) -> list[PartnerGoal]:
        return await self.partner_goals.list_for_owner(partner_id)

    async def get_partner_goal(self, goal_id: str) -> Optional[PartnerGoal]:
        return await self.partner_goals.get(goal_id)

    async def get_partner_goals_last_sync_time(self, partner_id: str):
        return await self.partner_goals.last_synced_at(partner_id)
