"""Tests for FastAPI health server."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from truthordare import __version__
from truthordare.health.checks import (
    CheckResult,
    CheckStatus,
    HealthChecker,
    HealthReport,
    HealthStatus,
)
from truthordare.health.server import create_health_app, create_health_server


def make_checker(status=HealthStatus.HEALTHY, ready=True):
    """Create mock health checker returning the given status."""
    checker = MagicMock(spec=HealthChecker)

    async def mock_check_all():
        return HealthReport(
            status=status,
            checks=[
                CheckResult(name="database", status=CheckStatus.PASS, message="OK"),
            ],
        )

    async def mock_is_ready():
        return ready

    async def mock_is_alive():
        return True

    checker.check_all = mock_check_all
    checker.is_ready = mock_is_ready
    checker.is_alive = mock_is_alive
    return checker


@pytest.fixture
def client():
    """Create test client for a healthy host."""
    return TestClient(create_health_app(make_checker()))


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_healthy_returns_200(self, client):
        """Should return 200 with the report."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"][0]["name"] == "database"

    def test_degraded_returns_200(self):
        """Should return 200 when only degraded."""
        client = TestClient(create_health_app(make_checker(HealthStatus.DEGRADED)))

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    def test_unhealthy_returns_503(self):
        """Should return 503 when unhealthy."""
        client = TestClient(create_health_app(make_checker(HealthStatus.UNHEALTHY)))

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"


class TestProbes:
    """Tests for /ready and /live endpoints."""

    def test_ready(self, client):
        """Should return 200 when ready."""
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_not_ready_returns_503(self):
        """Should return 503 when the database is down."""
        client = TestClient(create_health_app(make_checker(ready=False)))

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["ready"] is False

    def test_live(self, client):
        """Should always report alive."""
        response = client.get("/live")

        assert response.status_code == 200
        assert response.json()["alive"] is True


class TestMetricsAndRoot:
    """Tests for /metrics and / endpoints."""

    def test_metrics_exposes_prometheus_text(self, client):
        """Should serve the tod_ metrics in exposition format."""
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "tod_" in response.text

    def test_root_lists_endpoints(self, client):
        """Should describe the API."""
        data = client.get("/").json()

        assert data["version"] == __version__
        assert set(data["endpoints"]) == {"health", "ready", "live", "metrics"}


class TestCreateHealthServer:
    """Tests for create_health_server."""

    def test_server_config(self):
        """Should bind the requested host and port."""
        app = create_health_app(make_checker())

        server = create_health_server(app, host="127.0.0.1", port=9123)

        assert server.config.host == "127.0.0.1"
        assert server.config.port == 9123
        assert server.should_exit is False
