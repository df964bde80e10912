"""Simple API health tests without a database override."""

from types import SimpleNamespace

import pytest
from fastapi import Request
from httpx import ASGITransport, AsyncClient

from tourapi.core.middleware import UNMATCHED_ENDPOINT, LoggingMiddleware
from tourapi.main import create_app


@pytest.mark.asyncio
async def test_api_health_endpoint():
    """The liveness endpoint answers without touching the database."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data


@pytest.mark.asyncio
async def test_metrics_endpoint():
    """Test the metrics endpoint."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        await client.get("/health")
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "http_requests_total" in response.text


@pytest.mark.asyncio
async def test_openapi_docs():
    """Test that OpenAPI docs are available in development."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/docs")
        assert response.status_code == 200


@pytest.mark.asyncio
async def test_request_id_echoed():
    """A caller-supplied request id is returned unchanged."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_unmatched_paths_share_one_metric_label():
    """Unknown paths are counted under a fixed endpoint label."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/no-such-page-7f3a")
        assert response.status_code == 404
        metrics = (await client.get("/metrics")).text

    assert 'endpoint="unmatched"' in metrics
    assert "no-such-page-7f3a" not in metrics


def test_endpoint_label_uses_route_template():
    """Matched requests are labelled by route template, unmatched ones by a constant."""
    route = SimpleNamespace(path="/api/v1/tours/{tour_id}")
    matched = Request({"type": "http", "path": "/api/v1/tours/42", "headers": [], "route": route})
    unmatched = Request({"type": "http", "path": "/random/path", "headers": []})

    assert LoggingMiddleware._endpoint(matched) == "/api/v1/tours/{tour_id}"
    assert LoggingMiddleware._endpoint(unmatched) == UNMATCHED_ENDPOINT
