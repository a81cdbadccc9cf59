"""Integration tests for health and readiness probes."""

import pytest


@pytest.mark.integration
class TestHealthRoutes:
    """Test liveness and readiness endpoints."""

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["uptime_seconds"] >= 0

    def test_health_skips_request_context(self, test_client):
        response = test_client.get("/health")

        assert "X-Request-ID" not in response.headers

    def test_ready(self, test_client, monkeypatch):
        monkeypatch.setattr("rbacmanager.api.v1.endpoints.health.check_redis", lambda: True)
        monkeypatch.setattr(
            "rbacmanager.api.v1.endpoints.health.check_kubernetes", lambda: True
        )

        response = test_client.get("/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is True
        assert response.json()["checks"] == {"redis": True, "kubernetes": True}

    def test_not_ready(self, test_client, monkeypatch):
        monkeypatch.setattr("rbacmanager.api.v1.endpoints.health.check_redis", lambda: True)
        monkeypatch.setattr(
            "rbacmanager.api.v1.endpoints.health.check_kubernetes", lambda: False
        )

        response = test_client.get("/ready")

        assert response.status_code == 503
        assert response.json()["ready"] is False
        assert response.json()["message"] == "Not ready: kubernetes"
