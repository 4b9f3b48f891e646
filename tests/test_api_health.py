"""Tests for the /health endpoint."""

from unittest.mock import AsyncMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from timeline_summary.api.routes.health import router


def _make_app(health_result) -> FastAPI:
    app = FastAPI()
    app.include_router(router)
    app.state.openai = AsyncMock()
    app.state.openai.health_check = AsyncMock(return_value=health_result)
    return app


class TestHealthRoute:
    def test_health_ok(self):
        client = TestClient(_make_app({"healthy": True, "model": "gpt-4o"}))
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "model": "gpt-4o"}

    def test_health_openai_down(self):
        client = TestClient(_make_app({"healthy": False, "error": "Connection refused"}))
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
