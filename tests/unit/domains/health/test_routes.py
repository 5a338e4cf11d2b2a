"""
Tests for the liveness endpoint in src/domains/health/routes.py
"""

import pytest
from fastapi.testclient import TestClient

from src.domains.health.routes import SERVICE_NAME, SERVICE_VERSION


class TestHealthRoute:
    @pytest.mark.parametrize("path", ["/health", "/api/v1/health"])
    def test_health_check(self, client: TestClient, path: str):
        response = client.get(path)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["service"] == SERVICE_NAME
        assert body["version"] == SERVICE_VERSION
        assert "timestamp" in body

    def test_root_message(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert "running" in response.json()["message"]
