"""Integration tests for maintenance endpoints."""
import pytest


@pytest.mark.asyncio
class TestWeeklyMaintenance:
    """Tests for the weekly maintenance run."""

    async def test_run_without_body(self, app_client, mock_service, auth_headers):
        """Test the week defaults to the server clock."""
        from tandem_goals.models.maintenance import MaintenanceReport

        mock_service.run_weekly_maintenance.return_value = MaintenanceReport(
            owner_id="user123", current_week_id="2026-W03"
        )

        response = await app_client.post("/maintenance/weekly", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["current_week_id"] == "2026-W03"
        mock_service.run_weekly_maintenance.assert_called_once_with(
            owner_id="user123", week_id=None
        )

    async def test_run_for_week(self, app_client, mock_service, auth_headers):
        from tandem_goals.models.maintenance import MaintenanceReport

        mock_service.run_weekly_maintenance.return_value = MaintenanceReport(
            owner_id="user123",
            current_week_id="2026-W02",
            reset_goal_ids=["goal1"],
            archived_weeks=[("goal1", "2026-W01")],
        )

        response = await app_client.post(
            "/maintenance/weekly",
            json={"current_week_id": "2026-W02"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["reset_goal_ids"] == ["goal1"]
        assert data["archived_weeks"] == [["goal1", "2026-W01"]]
        mock_service.run_weekly_maintenance.assert_called_once_with(
            owner_id="user123", week_id="2026-W02"
        )

    async def test_invalid_week(self, app_client, mock_service, auth_headers):
        """Test a malformed week id maps to 422."""
        from tandem_goals.exceptions import InvalidWeekId

        mock_service.run_weekly_maintenance.side_effect = InvalidWeekId("2026-W9")

        response = await app_client.post(
            "/maintenance/weekly",
            json={"current_week_id": "2026-W9"},
            headers=auth_headers,
        )

        assert response.status_code == 422

    async def test_requires_user(self, app_client):
        response = await app_client.post("/maintenance/weekly")

        assert response.status_code == 401
