"""Active goal cap enforcement."""
import logging
from typing import Iterable

from pymongo.errors import DuplicateKeyError

from tandem_goals.exceptions import LimitExceeded
from tandem_goals.models.goal import Goal, GoalStatus

logger = logging.getLogger(__name__)

MAX_ACTIVE_GOALS = 10


class GoalLimitGuard:
    """
    Keeps each owner at or under the ACTIVE goal cap.

    The cap is checked at creation only. The live count is held in a per-owner
    quota document so that "check and take a slot" is one conditional write:
    an upsert matching ``active < limit``. When the owner is already at the
    limit the filter misses, the upsert tries to insert a second document
    with the same ``_id`` and MongoDB rejects it with a duplicate key error.
    """

    def __init__(self, db, limit: int = MAX_ACTIVE_GOALS):
        """Initialize guard with database connection."""
        self.db = db
        self.quotas = db["goal_quotas"]
        self.limit = limit

    def can_create(self, owner_id: str, existing_goals: Iterable[Goal]) -> bool:
        """True if owner_id has fewer ACTIVE goals than the limit."""
        active = sum(
            1
            for goal in existing_goals
            if goal.owner_id == owner_id and goal.status == GoalStatus.ACTIVE
        )
        return active < self.limit

    async def reserve(self, owner_id: str) -> None:
        """
        Take one ACTIVE slot for owner_id.

        Raises:
            LimitExceeded: If the owner already holds the maximum
        """
        try:
            await self.quotas.find_one_and_update(
                {"_id": owner_id, "active": {"$lt": self.limit}},
                {"$inc": {"active": 1}},
                upsert=True,
            )
        except DuplicateKeyError:
            logger.info("Owner %s is at the %d active goal limit", owner_id, self.limit)
            raise LimitExceeded(self.limit)

    async def release(self, owner_id: str) -> None:
        """Give back one slot after a goal leaves ACTIVE or a create fails."""
        await self.quotas.update_one(
            {"_id": owner_id, "active": {"$gt": 0}},
            {"$inc": {"active": -1}},
        )

    async def create(self, owner_id: str, insert):
        """
        Reserve a slot, then run ``insert``; hand the slot back if it fails.

        Args:
            owner_id: Owner of the new goal
            insert: Coroutine function performing the actual insert

        Returns:
            Whatever ``insert`` returns

        Raises:
            LimitExceeded: If the owner already holds the maximum
        """
        await self.reserve(owner_id)
        try:
            return await insert()
        except Exception:
            await self.release(owner_id)
            raise

    async def recount(self, owner_id: str, goals_collection) -> int:
        """Reset owner_id's quota document from the goals collection."""
        active = await goals_collection.count_documents(
            {"owner_id": owner_id, "status": GoalStatus.ACTIVE.value}
        )
        await self.quotas.update_one(
            {"_id": owner_id},
            {"$set": {"active": active}},
            upsert=True,
        )
        return active
