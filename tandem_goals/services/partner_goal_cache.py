"""Partner goal cache - local read-only mirror of a partner's goals."""
import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from tandem_goals.models.partner_goal import (
    ChangeAction,
    PartnerGoal,
    PartnerGoalRecord,
    PartnerSyncResult,
)
from tandem_goals.services.goal_store import doc_to_goal

logger = logging.getLogger(__name__)


class PartnerGoalCache:
    """
    Mirror of a partner's goals, maintained only from sync channel records.

    Writes are last-write-wins per goal id on the record's own
    (updated_at, synced_at), never on arrival order: an upsert only matches a
    cached copy that is strictly older. When a newer copy is already cached
    the filter misses, the upsert collides on ``_id`` and the stale record is
    dropped.
    """

    def __init__(self, db):
        """Initialize cache with database connection."""
        self.db = db
        self.partner_goals = db["partner_goals"]

    def _doc_to_partner_goal(self, doc: dict) -> PartnerGoal:
        goal = doc_to_goal(doc)
        return PartnerGoal(**goal.model_dump(), synced_at=doc["synced_at"])

    async def upsert(self, record: PartnerGoalRecord) -> bool:
        """
        Store a partner goal record unless a newer copy is already cached.

        Returns:
            True if the record was written, False if it was stale
        """
        doc = record.to_document()
        fields = {key: value for key, value in doc.items() if key != "_id"}

        try:
            await self.partner_goals.update_one(
                {
                    "_id": record.id,
                    "$or": [
                        {"updated_at": {"$lt": record.updated_at}},
                        {
                            "updated_at": record.updated_at,
                            "synced_at": {"$lt": record.synced_at},
                        },
                    ],
                },
                {"$set": fields},
                upsert=True,
            )
        except DuplicateKeyError:
            logger.debug("Ignoring stale partner goal record %s", record.id)
            return False

        return True

    async def remove(self, goal_id: str) -> bool:
        """Drop a goal from the mirror. Returns True if it was cached."""
        result = await self.partner_goals.delete_one({"_id": goal_id})
        return result.deleted_count == 1

    async def get(self, goal_id: str) -> Optional[PartnerGoal]:
        doc = await self.partner_goals.find_one({"_id": goal_id})
        return self._doc_to_partner_goal(doc) if doc else None

    async def list_for_owner(self, partner_id: str) -> list[PartnerGoal]:
        cursor = self.partner_goals.find({"owner_id": partner_id}).sort("created_at", 1)
        docs = await cursor.to_list(length=None)
        return [self._doc_to_partner_goal(doc) for doc in docs]

    async def last_synced_at(self, partner_id: str) -> Optional[datetime]:
        """Most recent sync time among a partner's cached goals."""
        doc = await self.partner_goals.find_one(
            {"owner_id": partner_id},
            {"synced_at": 1},
            sort=[("synced_at", -1)],
        )
        return doc["synced_at"] if doc else None

    async def clear(self, partner_id: str) -> int:
        """Forget all of a partner's goals, e.g. when the partnership ends."""
        result = await self.partner_goals.delete_many({"owner_id": partner_id})
        logger.info("Cleared %d cached goals for partner %s", result.deleted_count, partner_id)
        return result.deleted_count

    async def replace_all(
        self,
        partner_id: str,
        records: Iterable[PartnerGoalRecord],
    ) -> PartnerSyncResult:
        """
        Apply a full pull of a partner's goals.

        Every record owned by the partner is upserted; cached goals missing
        from the pull were deleted remotely and are dropped.
        """
        result = PartnerSyncResult(partner_id=partner_id)
        remote_ids = []

        for record in records:
            if record.owner_id != partner_id:
                logger.warning(
                    "Skipping goal %s owned by %s in pull for partner %s",
                    record.id,
                    record.owner_id,
                    partner_id,
                )
                continue
            remote_ids.append(record.id)
            if await self.upsert(record):
                result.upserted += 1
            else:
                result.stale += 1

        deleted = await self.partner_goals.delete_many(
            {"owner_id": partner_id, "_id": {"$nin": remote_ids}}
        )
        result.removed = deleted.deleted_count
        return result

    async def apply_change(
        self,
        partner_id: str,
        action: ChangeAction,
        payload: dict[str, Any],
    ) -> bool:
        """
        Apply one change event from the partner sync channel.

        Undecodable payloads and events for other owners are logged and
        skipped; they never raise.

        Returns:
            True if the cache changed
        """
        if action == ChangeAction.DELETE:
            goal_id = payload.get("id")
            if not goal_id or payload.get("owner_id") != partner_id:
                logger.warning("Ignoring partner goal delete event: %r", payload)
                return False
            return await self.remove(goal_id)

        try:
            record = PartnerGoalRecord.model_validate(payload)
        except ValidationError as e:
            logger.warning(
                "Could not decode partner goal %s event: %s", action.value, e
            )
            return False

        if record.owner_id != partner_id:
            logger.debug("Ignoring goal %s not owned by partner %s", record.id, partner_id)
            return False

        return await self.upsert(record)
