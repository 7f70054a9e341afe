"""Goal store - persistence for goals and their weekly progress snapshots."""
import logging
from typing import Iterable, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from tandem_goals.exceptions import ForbiddenPartnerMutation, GoalError, GoalNotFound
from tandem_goals.models.goal import (
    Goal,
    GoalCreate,
    GoalStatus,
    goal_type_fields,
    goal_type_from_fields,
    parse_goal_status,
)
from tandem_goals.models.goal_progress import GoalProgress, GoalProgressCreate
from tandem_goals.utils.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


def doc_to_goal(doc: dict) -> Goal:
    """Convert a goal document (own or partner cache) to a Goal."""
    return Goal(
        _id=str(doc["_id"]),
        name=doc["name"],
        icon=doc["icon"],
        type=goal_type_from_fields(
            doc.get("type"),
            doc.get("target_per_week"),
            doc.get("target_total"),
        ),
        duration_weeks=doc.get("duration_weeks"),
        start_week_id=doc["start_week_id"],
        current_week_id=doc["current_week_id"],
        owner_id=doc["owner_id"],
        current_progress=doc.get("current_progress", 0),
        status=parse_goal_status(doc.get("status")),
        created_at=doc["created_at"],
        updated_at=doc["updated_at"],
    )


class GoalStore:
    """CRUD and queries over the ``goals`` and ``goal_progress`` collections."""

    def __init__(self, db, clock: Optional[Clock] = None):
        """Initialize store with database connection."""
        self.db = db
        self.goals = db["goals"]
        self.progress = db["goal_progress"]
        self.clock = clock or SystemClock()

    def _doc_to_progress(self, doc: dict) -> GoalProgress:
        return GoalProgress(
            _id=str(doc["_id"]),
            goal_id=doc["goal_id"],
            week_id=doc["week_id"],
            progress_value=doc["progress_value"],
            target_value=doc["target_value"],
            created_at=doc["created_at"],
        )

    # Reads

    async def get_goal(self, goal_id: str) -> Optional[Goal]:
        doc = await self.goals.find_one({"_id": goal_id})
        return doc_to_goal(doc) if doc else None

    async def get_owned_goal(
        self,
        user_id: str,
        goal_id: str,
        forbidden: type[GoalError] = ForbiddenPartnerMutation,
    ) -> Goal:
        """
        Get a goal the acting user is allowed to mutate.

        Args:
            user_id: Acting user ID
            goal_id: Goal ID
            forbidden: Error raised when the goal belongs to someone else

        Raises:
            GoalNotFound: If no such goal exists
            forbidden: If the goal is owned by another user or only known
                from the partner cache
        """
        goal = await self.get_goal(goal_id)
        if goal is None:
            if await self.db["partner_goals"].find_one({"_id": goal_id}):
                raise forbidden(goal_id)
            raise GoalNotFound(goal_id)

        if goal.owner_id != user_id:
            raise forbidden(goal_id)

        return goal

    async def list_goals(
        self,
        owner_id: str,
        status: Optional[GoalStatus] = None,
    ) -> list[Goal]:
        """
        List an owner's goals, oldest first.

        Args:
            owner_id: Owner user ID
            status: Optional status filter

        Returns:
            List of goals
        """
        query = {"owner_id": owner_id}
        if status:
            query["status"] = status.value

        cursor = self.goals.find(query).sort("created_at", 1)
        docs = await cursor.to_list(length=None)
        return [doc_to_goal(doc) for doc in docs]

    async def get_goals_by_ids(self, goal_ids: Iterable[str]) -> dict[str, Goal]:
        """Fetch several goals at once; ids with no goal are left out."""
        goal_ids = list(goal_ids)
        if not goal_ids:
            return {}

        cursor = self.goals.find({"_id": {"$in": goal_ids}})
        docs = await cursor.to_list(length=None)
        return {str(doc["_id"]): doc_to_goal(doc) for doc in docs}

    async def count_active_goals(self, owner_id: str) -> int:
        return await self.goals.count_documents(
            {"owner_id": owner_id, "status": GoalStatus.ACTIVE.value}
        )

    # Writes

    async def insert_goal(
        self,
        owner_id: str,
        goal_create: GoalCreate,
        week_id: str,
    ) -> Goal:
        """
        Insert a new ACTIVE goal starting in week_id with zero progress.

        Returns:
            Created goal object
        """
        now = self.clock.now()
        goal_doc = {
            "_id": str(ObjectId()),
            "name": goal_create.name,
            "icon": goal_create.icon,
            **goal_type_fields(goal_create.type),
            "duration_weeks": goal_create.duration_weeks,
            "start_week_id": week_id,
            "current_week_id": week_id,
            "owner_id": owner_id,
            "current_progress": 0,
            "status": GoalStatus.ACTIVE.value,
            "created_at": now,
            "updated_at": now,
        }

        await self.goals.insert_one(goal_doc)
        return doc_to_goal(goal_doc)

    async def update_goal_fields(self, goal_id: str, fields: dict) -> Optional[Goal]:
        """Set plain fields on a goal; returns the updated goal or None."""
        update_doc = {**fields, "updated_at": self.clock.now()}
        doc = await self.goals.find_one_and_update(
            {"_id": goal_id},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )
        return doc_to_goal(doc) if doc else None

    async def increment_progress(self, goal_id: str, amount: int = 1) -> Optional[Goal]:
        """
        Add to an ACTIVE goal's counter in one atomic update.

        Returns:
            Updated goal, or None when the goal is missing or no longer ACTIVE
        """
        doc = await self.goals.find_one_and_update(
            {"_id": goal_id, "status": GoalStatus.ACTIVE.value},
            {
                "$inc": {"current_progress": amount},
                "$set": {"updated_at": self.clock.now()},
            },
            return_document=ReturnDocument.AFTER,
        )
        return doc_to_goal(doc) if doc else None

    async def transition_status(self, goal_id: str, status: GoalStatus) -> Optional[Goal]:
        """
        Move an ACTIVE goal to status.

        Returns:
            Updated goal, or None when the goal was not ACTIVE any more
        """
        doc = await self.goals.find_one_and_update(
            {"_id": goal_id, "status": GoalStatus.ACTIVE.value},
            {"$set": {"status": status.value, "updated_at": self.clock.now()}},
            return_document=ReturnDocument.AFTER,
        )
        return doc_to_goal(doc) if doc else None

    async def apply_weekly_reset(
        self,
        goal: Goal,
        previous_week_id: str,
        previous_progress: int,
    ) -> bool:
        """
        Persist a reset computed by the weekly reset engine.

        Matches on the week and counter value that were archived. A second
        run that raced this one, or a task completion that landed after the
        snapshot was taken, makes the update miss instead of being lost.

        Returns:
            True if this call performed the reset
        """
        result = await self.goals.update_one(
            {
                "_id": goal.id,
                "status": GoalStatus.ACTIVE.value,
                "current_week_id": previous_week_id,
                "current_progress": previous_progress,
            },
            {
                "$set": {
                    "current_progress": goal.current_progress,
                    "current_week_id": goal.current_week_id,
                    "updated_at": self.clock.now(),
                }
            },
        )
        return result.modified_count == 1

    async def delete_goal(self, goal_id: str) -> Optional[Goal]:
        """
        Hard delete a goal and its progress history.

        Linked tasks are left alone; their goal reference dangles.

        Returns:
            The deleted goal, or None if it did not exist
        """
        doc = await self.goals.find_one_and_delete({"_id": goal_id})
        if not doc:
            return None

        result = await self.progress.delete_many({"goal_id": goal_id})
        logger.debug(
            "Deleted goal %s with %d progress records", goal_id, result.deleted_count
        )
        return doc_to_goal(doc)

    # Progress history

    async def archive_progress(self, record: GoalProgressCreate) -> bool:
        """
        Store one weekly snapshot, overwriting the value of an earlier one.

        Returns:
            True if (goal_id, week_id) had no snapshot before this call
        """
        key = {"goal_id": record.goal_id, "week_id": record.week_id}
        values = {
            "$set": {
                "progress_value": record.progress_value,
                "target_value": record.target_value,
            },
            "$setOnInsert": {"_id": str(ObjectId()), "created_at": self.clock.now()},
        }
        try:
            result = await self.progress.update_one(key, values, upsert=True)
        except DuplicateKeyError:
            # Lost an upsert race on the unique (goal_id, week_id) index
            logger.info(
                "Progress for goal %s in %s archived concurrently",
                record.goal_id,
                record.week_id,
            )
            await self.progress.update_one(key, {"$set": values["$set"]})
            return False
        return result.upserted_id is not None

    async def archived_keys(
        self, keys: Iterable[tuple[str, str]]
    ) -> set[tuple[str, str]]:
        """Subset of (goal_id, week_id) pairs that already have a snapshot."""
        keys = list(keys)
        if not keys:
            return set()

        cursor = self.progress.find(
            {"$or": [{"goal_id": goal_id, "week_id": week_id} for goal_id, week_id in keys]},
            {"goal_id": 1, "week_id": 1},
        )
        docs = await cursor.to_list(length=None)
        return {(doc["goal_id"], doc["week_id"]) for doc in docs}

    async def list_progress(self, goal_id: str) -> list[GoalProgress]:
        """Progress history for a goal, oldest week first."""
        cursor = self.progress.find({"goal_id": goal_id}).sort("week_id", 1)
        docs = await cursor.to_list(length=None)
        return [self._doc_to_progress(doc) for doc in docs]
