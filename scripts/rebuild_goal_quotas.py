"""Recompute per-owner active goal quotas from the goals collection.

Usage:
    python scripts/rebuild_goal_quotas.py <mongodb_url> [db_name] [owner_id]
"""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient

from tandem_goals.services.goal_limit import GoalLimitGuard


async def rebuild_goal_quotas(mongodb_url: str, db_name: str, owner_id: str | None = None):
    """Set each owner's quota document to their real ACTIVE goal count."""
    client = AsyncIOMotorClient(mongodb_url)
    db = client[db_name]
    guard = GoalLimitGuard(db)

    if owner_id:
        owner_ids = [owner_id]
    else:
        owner_ids = await db["goals"].distinct("owner_id")

    for owner in owner_ids:
        active = await guard.recount(owner, db["goals"])
        print(f"{owner}: {active} active goals")

    client.close()
    print("Done!")


if __name__ == "__main__":
    if len(sys.argv) not in (2, 3, 4):
        print("Usage: python rebuild_goal_quotas.py <mongodb_url> [db_name] [owner_id]")
        sys.exit(1)

    url = sys.argv[1]
    name = sys.argv[2] if len(sys.argv) > 2 else "tandem_goals"
    owner = sys.argv[3] if len(sys.argv) > 3 else None
    asyncio.run(rebuild_goal_quotas(url, name, owner))
