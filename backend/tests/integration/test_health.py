"""Tests for the health check endpoint."""

import pytest
from httpx import ASGITransport, AsyncClient

from community_search.application.services.provider_factory import ProviderFactory
from community_search.infrastructure.dependencies import get_provider_factory
from community_search.main import app


@pytest.mark.asyncio
async def test_health_check_returns_200():
    """Health endpoint should return 200 with status, version, environment and providers."""
    app.dependency_overrides[get_provider_factory] = lambda: ProviderFactory()
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/v1/health")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert "environment" in data
    assert data["providers"] == {"chat": False, "embedding": False, "open_circuits": []}
