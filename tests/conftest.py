"""Pytest configuration and fixtures."""
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from tandem_goals.main import app
from tandem_goals.models.goal import Goal
from tandem_goals.routers.dependencies import get_goal_service
from tandem_goals.services.goal_service import GoalService
from tandem_goals.utils.clock import FixedClock

NOW = datetime(2026, 1, 14, 9, 30)  # Wednesday of 2026-W03


def make_collection() -> MagicMock:
    """A Motor collection stand-in with async methods and an empty cursor."""
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock(
        return_value=MagicMock(matched_count=1, modified_count=1)
    )
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.find_one_and_delete = AsyncMock(return_value=None)
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=0))
    collection.count_documents = AsyncMock(return_value=0)

    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value = cursor
    collection.cursor = cursor
    return collection


class MockDatabase(dict):
    """``db[name]`` hands out one mock collection per name."""

    def __missing__(self, name):
        collection = make_collection()
        self[name] = collection
        return collection


@pytest.fixture
def mock_db():
    return MockDatabase()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def goal_doc():
    """Factory for stored goal documents."""

    def build(**overrides) -> dict:
        doc = {
            "_id": "goal1",
            "name": "Run together",
            "icon": "🏃",
            "type": "weekly_habit",
            "target_per_week": 3,
            "target_total": None,
            "duration_weeks": None,
            "start_week_id": "2026-W01",
            "current_week_id": "2026-W01",
            "owner_id": "user123",
            "current_progress": 0,
            "status": "active",
            "created_at": NOW,
            "updated_at": NOW,
        }
        doc.update(overrides)
        return doc

    return build


@pytest.fixture
def make_goal(goal_doc):
    """Factory for Goal models built from the same defaults."""

    def build(**overrides) -> Goal:
        from tandem_goals.services.goal_store import doc_to_goal

        return doc_to_goal(goal_doc(**overrides))

    return build


@pytest.fixture
def mock_service():
    return MagicMock(spec=GoalService)


@pytest.fixture
def auth_headers():
    return {"X-User-Id": "user123"}


@pytest.fixture
def partner_headers(auth_headers):
    """Headers for a user paired with partner456."""
    return {**auth_headers, "X-Partner-Id": "partner456"}


@pytest_asyncio.fixture
async def app_client(mock_service):
    """
    HTTP client against the app with the goal service swapped for a mock.

    The lifespan does not run, so no database connection is made.
    """
    app.dependency_overrides[get_goal_service] = lambda: mock_service

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
