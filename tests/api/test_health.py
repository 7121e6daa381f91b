"""
Tests for health and readiness endpoints.
"""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock, patch

from marketlens import __version__
from marketlens.api.main import app


@pytest.fixture
def client():
    """Test client without the lifespan, so no database is contacted."""
    yield TestClient(app)
    if hasattr(app.state, "pipeline"):
        del app.state.pipeline


class TestHealthEndpoint:

    def test_health_returns_200(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "marketlens", "version": __version__}


class TestReadinessEndpoint:

    def test_ready_when_initialized(self, client):
        app.state.pipeline = MagicMock()

        with patch("marketlens.api.routes.health.db_manager") as manager:
            manager.ping = AsyncMock(return_value=True)
            response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["mongodb"] == "connected"

    def test_not_ready_without_pipeline(self, client):
        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["reason"] == "Pipeline not initialized"

    def test_not_ready_when_mongodb_down(self, client):
        app.state.pipeline = MagicMock()

        with patch("marketlens.api.routes.health.db_manager") as manager:
            manager.ping = AsyncMock(return_value=False)
            response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["reason"] == "MongoDB unreachable"


class TestRootEndpoint:

    def test_lists_endpoints(self, client):
        data = client.get("/").json()

        assert data["version"] == __version__
        assert data["endpoints"]["focus_groups"] == "/projects/{project_id}/focus-groups"
