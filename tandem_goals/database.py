"""MongoDB database connection using Motor (async driver)."""
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from tandem_goals.config import settings

logger = logging.getLogger(__name__)


class Database:
    """MongoDB database connection manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """Connect to MongoDB."""
        self.client = AsyncIOMotorClient(settings.mongodb_url)
        self.db = self.client[settings.mongodb_db_name]
        logger.info("Connected to MongoDB: %s", settings.mongodb_db_name)

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def ensure_indexes(self) -> None:
        """
        Create the indexes the goal engine relies on.

        The unique (goal_id, week_id) index on goal_progress is what turns a
        concurrent double archive into a duplicate key error.
        """
        if self.db is None:
            raise RuntimeError("Database not connected")

        await self.db["goals"].create_index([("owner_id", ASCENDING), ("status", ASCENDING)])
        await self.db["goal_progress"].create_index(
            [("goal_id", ASCENDING), ("week_id", ASCENDING)],
            unique=True,
        )
        await self.db["partner_goals"].create_index(
            [("owner_id", ASCENDING), ("synced_at", DESCENDING)]
        )
        await self.db["tasks"].create_index([("linked_goal_id", ASCENDING)])


# Global database instance
database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    if database.db is None:
        raise RuntimeError("Database not connected")
    return database.db
