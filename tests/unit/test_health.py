"""Unit tests for health endpoints."""

import pytest


@pytest.mark.asyncio
async def test_health_check(test_client):
    """Test the health check endpoint."""
    response = await test_client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "service" in data
    assert "version" in data


@pytest.mark.asyncio
async def test_ready_check(test_client):
    """Readiness round-trips a query through the overridden session."""
    response = await test_client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["database"] == "ok"


@pytest.mark.asyncio
async def test_ready_check_database_down(test_app, test_client):
    """An unreachable database makes the service report itself unavailable."""
    from tourapi.core.database import get_db

    class BrokenSession:
        async def execute(self, *args, **kwargs):
            raise ConnectionRefusedError("database is down")

    async def broken_db():
        yield BrokenSession()

    test_app.dependency_overrides[get_db] = broken_db

    response = await test_client.get("/ready")
    assert response.status_code == 503
    assert response.json()["checks"]["database"] == "unreachable"
