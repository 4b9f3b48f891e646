"""Tests for the FastAPI app startup/shutdown and route wiring."""

from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient


def _settings():
    return MagicMock(
        OPENAI_API_KEY="sk-test",
        OPENAI_MODEL="gpt-4o",
        SF_LOGIN_URL="https://example.my.salesforce.com",
        CALLBACK_TIMEOUT_SECONDS=30.0,
    )


class TestAppRouteWiring:
    @patch("timeline_summary.api.main.get_settings")
    @patch("timeline_summary.api.main.Notifier")
    @patch("timeline_summary.api.main.OpenAIClient")
    def test_lifespan_sets_and_closes_clients(self, mock_openai, mock_notifier, mock_settings):
        mock_settings.return_value = _settings()
        openai = AsyncMock()
        openai.health_check.return_value = {"healthy": True, "model": "gpt-4o"}
        mock_openai.return_value = openai
        notifier = AsyncMock()
        mock_notifier.return_value = notifier

        from timeline_summary.api.main import app

        with TestClient(app) as client:
            resp = client.get("/health")
            assert resp.status_code == 200
            assert app.state.notifier is notifier

        mock_openai.assert_called_once_with(api_key="sk-test", model="gpt-4o")
        mock_notifier.assert_called_once_with(timeout_seconds=30.0)
        openai.close.assert_awaited_once()
        notifier.close.assert_awaited_once()

    @patch("timeline_summary.api.main.get_settings")
    @patch("timeline_summary.api.main.Notifier")
    @patch("timeline_summary.api.main.OpenAIClient")
    def test_generate_summary_route_requires_auth(self, mock_openai, mock_notifier, mock_settings):
        mock_settings.return_value = _settings()
        mock_openai.return_value = AsyncMock()
        mock_notifier.return_value = AsyncMock()

        from timeline_summary.api.main import app

        with TestClient(app) as client:
            resp = client.post("/generatesummary", json={})
            assert resp.status_code in (400, 401)

    @patch("timeline_summary.api.main.get_settings")
    @patch("timeline_summary.api.main.Notifier")
    @patch("timeline_summary.api.main.OpenAIClient")
    def test_non_object_body_returns_400(self, mock_openai, mock_notifier, mock_settings):
        mock_settings.return_value = _settings()
        mock_openai.return_value = AsyncMock()
        mock_notifier.return_value = AsyncMock()

        from timeline_summary.api.config import get_settings
        from timeline_summary.api.main import app

        app.dependency_overrides[get_settings] = _settings
        try:
            with TestClient(app) as client:
                resp = client.post(
                    "/generatesummary",
                    json=["not", "an", "object"],
                    headers={"Authorization": "Bearer tok"},
                )
                assert resp.status_code == 400
        finally:
            app.dependency_overrides.clear()
