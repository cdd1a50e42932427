"""
Tests for health check endpoints.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from plandropper.main import app


@pytest.fixture
def client(fake_redis):
    db_pool = MagicMock()
    db_pool.health_check = AsyncMock(
        return_value={
            "healthy": True,
            "pool_stats": {"pool_size": 2, "pool_available": 2},
        }
    )
    app.state.db_pool = db_pool
    app.state.redis = fake_redis
    yield TestClient(app)
    del app.state.db_pool
    del app.state.redis


def test_healthz_endpoint(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Request-ID"]


def test_readyz_all_services_healthy(client):
    response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["redis"]["ok"] is True
    assert data["checks"]["database"]["ok"] is True
    assert data["checks"]["database"]["pool_size"] == 2


def test_readyz_redis_unhealthy(client, monkeypatch):
    monkeypatch.setattr(app.state.redis, "ping", AsyncMock(return_value=False))

    response = client.get("/readyz")

    assert response.status_code == 503
    assert response.json()["checks"]["redis"]["ok"] is False


def test_readyz_database_unhealthy(client):
    app.state.db_pool.health_check.return_value = {"healthy": False, "error": "Pool not initialized"}

    response = client.get("/readyz")

    assert response.status_code == 503
    checks = response.json()["checks"]
    assert checks["database"]["ok"] is False
    assert checks["database"]["error"] == "Pool not initialized"
